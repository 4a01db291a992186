"""Service for reading the static vocabulary data."""
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from petwords.config import settings
from petwords.errors import WordNotFound

logger = logging.getLogger(__name__)


def slugify(english: str) -> str:
    """English text lower-cased with whitespace runs replaced by ``_``."""
    return re.sub(r"\s+", "_", english.strip().lower())


@dataclass
class VocabularyWord:
    """One word of a topic."""
    id: str
    english: str
    chinese: str
    example: str = ""
    example_chinese: str = ""
    topic_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], topic_id: Optional[str] = None) -> "VocabularyWord":
        english = data.get("english", "")
        return cls(
            id=str(data.get("id") or slugify(english)),
            english=english,
            chinese=data.get("chinese", ""),
            example=data.get("example", ""),
            example_chinese=data.get("exampleChinese", ""),
            topic_id=topic_id,
        )

    @property
    def slug(self) -> str:
        return slugify(self.english)


class VocabularyService:
    """Service for looking up topics and words from JSON files."""

    def __init__(self, dictionaries_dir: Optional[Path] = None):
        """Initialize the service with the directory holding index.json."""
        self.dictionaries_dir = Path(dictionaries_dir or settings.paths.dictionaries_dir)
        self._index: Optional[Dict[str, Any]] = None
        self._topics: Dict[str, List[VocabularyWord]] = {}

    def _read_json(self, path: Path) -> Dict[str, Any]:
        with path.open(encoding="utf-8") as f:
            return json.load(f)

    @property
    def index(self) -> Dict[str, Any]:
        if self._index is None:
            index_file = self.dictionaries_dir / "index.json"
            if index_file.exists():
                self._index = self._read_json(index_file)
            else:
                logger.warning(f"Vocabulary index {index_file} not found")
                self._index = {"topics": []}
        return self._index

    def topics(self) -> List[Dict[str, Any]]:
        return list(self.index.get("topics", []))

    def words_for_topic(self, topic_id: str) -> List[VocabularyWord]:
        """Words of a topic in file order."""
        if topic_id in self._topics:
            return self._topics[topic_id]

        topic = next((topic for topic in self.topics() if topic.get("id") == topic_id), None)
        if topic is None:
            raise WordNotFound(topic_id)

        try:
            data = self._read_json(self.dictionaries_dir / topic["file"])
        except FileNotFoundError as e:
            logger.error(f"Word file of topic {topic_id} is missing: {e}")
            raise WordNotFound(topic_id) from e
        words = [VocabularyWord.from_dict(word, topic_id) for word in data.get("words", [])]
        self._topics[topic_id] = words
        logger.debug(f"Loaded {len(words)} words for topic {topic_id}")
        return words

    def get_word(self, topic_id: str, word_id: str) -> VocabularyWord:
        """Find a word by id, falling back to its English text written as a slug."""
        words = self.words_for_topic(topic_id)
        for word in words:
            if word.id == word_id:
                return word
        for word in words:
            if word.slug == word_id:
                return word
        raise WordNotFound(topic_id, word_id)

    def search(self, query: str) -> List[VocabularyWord]:
        """Search loaded topics by English (case-insensitive) or Chinese text."""
        lower_query = query.lower()
        return [
            word
            for words in self._topics.values()
            for word in words
            if lower_query in word.english.lower() or query in word.chinese
        ]

    def total_word_count(self) -> int:
        return int(self.index.get("totalWords", 0))
