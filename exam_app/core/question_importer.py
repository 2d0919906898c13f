"""Utilities for importing a course question bank from a plain-text file.

File format (repeat blocks separated by blank lines or '---'):

    Q: Question text (supports markdown + LaTeX). Additional lines until the
       next marker are treated as part of the question.
    A: First option text
    B: Second option text
    ...                  (two or more options, lettered in order)
    CORRECT: letter of the correct option (required)

Example:

    Q: What is $2 + 2$?
    A: 3
    B: 4
    C: 5
    CORRECT: B

The parsed drafts are handed to `CourseCatalog.create_course`, which assigns
the question ids and applies the course-level validation.
"""

from __future__ import annotations

from pathlib import Path
import string

from exam_app.constants.exam_constants import MIN_QUESTION_OPTIONS
from exam_app.core.models import QuestionDraft


class QuestionImportError(Exception):
    """Raised when a question bank cannot be parsed."""


_OPTION_LETTERS = string.ascii_uppercase


def load_questions_from_file(file_path: Path) -> list[QuestionDraft]:
    return load_questions_from_text(Path(file_path).read_text(encoding="utf-8"))


def load_questions_from_text(text: str) -> list[QuestionDraft]:
    questions = [_parse_block(block) for block in _split_blocks(text)]
    if not questions:
        raise QuestionImportError("Question bank did not contain any questions.")
    return questions


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---" or not stripped:
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        current_block.append(raw_line)
    if current_block:
        blocks.append("\n".join(current_block).strip())
    return [block for block in blocks if block]


def _parse_block(block: str) -> QuestionDraft:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if len(line) > 2 and line[1] == ":" and line[0].upper() == _next_letter(options):
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in options:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuestionImportError(f"Encountered text outside of a known section: '{line}'.")

    prompt = "\n".join(question_lines).strip()
    if not prompt:
        raise QuestionImportError("Question text missing (Q: ...)")

    letters = _OPTION_LETTERS[: len(options)]
    if len(options) < MIN_QUESTION_OPTIONS:
        raise QuestionImportError(
            f"Each question needs at least {MIN_QUESTION_OPTIONS} options lettered in order from A."
        )
    option_list = [options[letter].strip() for letter in letters]
    if any(not option for option in option_list):
        raise QuestionImportError("Option text cannot be empty.")

    if correct_letter is None:
        raise QuestionImportError("CORRECT is required for every question.")
    if len(correct_letter) != 1 or correct_letter not in letters:
        raise QuestionImportError(f"CORRECT must be one of {', '.join(letters)}.")

    return QuestionDraft(prompt=prompt, options=option_list, answer=letters.index(correct_letter))


def _next_letter(options: dict[str, str]) -> str | None:
    if len(options) >= len(_OPTION_LETTERS):
        return None
    return _OPTION_LETTERS[len(options)]
