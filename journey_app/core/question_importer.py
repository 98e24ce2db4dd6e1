"""Loads the static question pool from a human-friendly text file.

File format (repeat blocks separated by blank lines or '---'):

    ID: 1
    LEVEL: 1
    EVENT: Genealogy
    Q: Question text. Additional lines until the next marker are treated as
       part of the question.
    A: First option text
    B: Second option text
    C: Third option text
    D: Fourth option text
    CORRECT: A|B|C|D
    REFERENCE: Matthew 1:16
    EXPLANATION: Optional free text, may continue on following lines.

The CORRECT letter only refers to the order in the file. It is resolved to
the option text while parsing, so the loaded question keeps its answer when
the options are shuffled later.
"""

from __future__ import annotations

from pathlib import Path

from journey_app.core.models import InvalidQuestionError, Question

_DATA_PATH = Path(__file__).resolve().parent.parent / "data" / "matthew_questions.txt"
_OPTION_ORDER = ["A", "B", "C", "D"]
_INTEGER_FIELDS = ("ID", "LEVEL")
_TEXT_FIELDS = ("EVENT", "REFERENCE", "EXPLANATION")


class QuestionPoolImportError(ValueError):
    """Raised when a question pool definition cannot be parsed."""


def load_question_pool(file_path: Path | None = None) -> list[Question]:
    """Parse and validate every question in ``file_path`` (bundled pool by default)."""
    path = file_path or _DATA_PATH
    text = path.read_text(encoding="utf-8")
    questions = parse_question_pool(text)
    if not questions:
        raise QuestionPoolImportError(f"Question file {path} did not contain any questions.")
    return questions


def parse_question_pool(text: str) -> list[Question]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    questions = [_parse_block(block) for block in blocks if block]
    seen_ids: set[int] = set()
    for question in questions:
        if question.id in seen_ids:
            raise QuestionPoolImportError(f"Duplicate question ID {question.id}.")
        seen_ids.add(question.id)
    return questions


def _parse_block(block: str) -> Question:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    integers: dict[str, int] = {}
    texts: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        key = upper.split(":", 1)[0]
        if ":" in line and key in _INTEGER_FIELDS:
            raw_value = line.split(":", 1)[1].strip()
            try:
                integers[key] = int(raw_value)
            except ValueError as exc:
                raise QuestionPoolImportError(f"{key} must be an integer, got '{raw_value}'.") from exc
            current_section = None
            continue

        if ":" in line and key in _TEXT_FIELDS:
            texts[key] = line.split(":", 1)[1].strip()
            current_section = key
            continue

        if len(line) > 2 and line[0].upper() in _OPTION_ORDER and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in _OPTION_ORDER:
            options[current_section] = options[current_section] + f"\n{line}"
        elif current_section in _TEXT_FIELDS:
            texts[current_section] = texts[current_section] + f" {line}"
        else:
            raise QuestionPoolImportError(
                f"Encountered text outside of a known section: '{line}'."
            )

    if "ID" not in integers:
        raise QuestionPoolImportError("Question ID missing (ID: ...)")
    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuestionPoolImportError(f"Question {integers['ID']}: text missing (Q: ...)")
    if len(options) != 4:
        raise QuestionPoolImportError(
            f"Question {integers['ID']}: each question must define exactly four options (A-D)."
        )
    if correct_letter not in _OPTION_ORDER:
        raise QuestionPoolImportError(
            f"Question {integers['ID']}: CORRECT must be one of A, B, C, or D."
        )

    option_list = tuple(options[letter].strip() for letter in _OPTION_ORDER)
    question = Question(
        id=integers["ID"],
        level=integers.get("LEVEL", 0),
        event=texts.get("EVENT", ""),
        question_text=question_text,
        options=option_list,
        correct_option=option_list[_OPTION_ORDER.index(correct_letter)],
        reference=texts.get("REFERENCE", ""),
        explanation=texts.get("EXPLANATION", ""),
    )
    try:
        question.validate()
    except InvalidQuestionError as exc:
        raise QuestionPoolImportError(str(exc)) from exc
    return question
