"""Tests for the command line entry point."""
import pytest

from petwords.__main__ import build_parser, main
from petwords.services.learning_service import LearningService


def test_review_command(service: LearningService, capsys) -> None:
    assert main(["review", "alice", "animals", "cat", "correct"], service=service) == 0

    out = capsys.readouterr().out
    assert "animals_cat: FAMILIAR next review 2026-03-06" in out


def test_review_unknown_word(service: LearningService, capsys) -> None:
    assert main(["review", "alice", "animals", "unicorn", "correct"], service=service) == 1
    assert "Skipped" in capsys.readouterr().out


def test_blank_account_is_rejected(service: LearningService, capsys) -> None:
    assert main(["review", " ", "animals", "cat", "correct"], service=service) == 2
    assert "account id is required" in capsys.readouterr().err


def test_invalid_quiz(service: LearningService, capsys) -> None:
    assert main(["quiz", "alice", "animals", "5", "3"], service=service) == 2
    assert "Error" in capsys.readouterr().err


def test_quiz_and_progress(service: LearningService, capsys) -> None:
    main(["review", "alice", "animals", "dog", "correct"], service=service)
    assert main(["quiz", "alice", "animals", "3", "4", "--wrong", "cat"], service=service) == 0
    assert "Quiz animals: 75% (1 words to review)" in capsys.readouterr().out

    assert main(["progress", "alice", "--topic", "animals"], service=service) == 0
    assert "animals: 1/2 learned" in capsys.readouterr().out

    assert main(["progress", "alice"], service=service) == 0
    assert "1 words learned" in capsys.readouterr().out


def test_progress_for_unknown_topic(service: LearningService, capsys) -> None:
    main(["review", "alice", "animals", "dog", "correct"], service=service)
    assert main(["progress", "alice", "--topic", "food"], service=service) == 1


def test_due_and_leaderboard(service: LearningService, clock, capsys) -> None:
    main(["review", "alice", "animals", "cat", "incorrect"], service=service)
    capsys.readouterr()
    clock.advance(1)

    assert main(["due", "alice"], service=service) == 0
    assert "1 words due" in capsys.readouterr().out

    assert main(["leaderboard"], service=service) == 0
    assert "alice" in capsys.readouterr().out


def test_stats(service: LearningService, capsys) -> None:
    main(["review", "alice", "animals", "cat", "correct"], service=service)
    capsys.readouterr()

    assert main(["stats", "alice"], service=service) == 0
    out = capsys.readouterr().out
    assert "total_words_learned: 1" in out
    assert "recent_quizzes" not in out


def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
