"""
Grading oracle adapter.

Turns (exam, submission image) into a GradingResult by asking a
vision-capable model (Anthropic Claude or OpenAI) to grade the handwritten
answers against the exam's answer key.

Oracle-side failures never escape GradingOracle.grade(): unparseable output,
network errors and timeouts all produce the degraded result (score 0, empty
breakdown, manual-review feedback). Only caller-side mistakes, such as an exam
without an answer key, raise ExamContractError.
"""
import base64
import json
import logging
from dataclasses import dataclass, field
from typing import Optional

from ..config import (
    DEFAULT_FEEDBACK_LANGUAGE, DEFAULT_ORACLE_MAX_TOKENS, DEFAULT_ORACLE_TIMEOUT,
    ORACLE_PROVIDERS,
)
from ..errors import ExamContractError
from .json_extract import extract_json_object

logger = logging.getLogger(__name__)

# "Automatic grading failed. Please grade manually."
MANUAL_REVIEW_FEEDBACK = 'Автомат шалгалт амжилтгүй боллоо. Гараар шалгана уу.'

DEFAULT_MODELS = {
    'anthropic': 'claude-sonnet-4-20250514',
    'openai': 'gpt-4o',
}

REQUIRED_EXAM_FIELDS = ('exam_name', 'total_points', 'answer_key')


@dataclass
class GradingResult:
    """Structured oracle output for one submission attempt."""
    student_code: Optional[str] = None
    score: float = 0
    feedback: str = ''
    question_results: list = field(default_factory=list)
    degraded: bool = False

    @classmethod
    def degraded_result(cls):
        return cls(score=0, feedback=MANUAL_REVIEW_FEEDBACK, question_results=[], degraded=True)

    def to_dict(self):
        return {
            "student_code": self.student_code,
            "score": self.score,
            "feedback": self.feedback,
            "question_results": self.question_results,
        }


# =============================================================================
# PROMPT
# =============================================================================

def build_grading_prompt(exam: dict, feedback_language: str = DEFAULT_FEEDBACK_LANGUAGE) -> str:
    answer_key = json.dumps(exam.get('answer_key'), ensure_ascii=False)
    return f"""You are an expert math teacher grading a student's handwritten exam.

EXAM DETAILS:
- Name: {exam.get('exam_name')}
- Total points: {exam.get('total_points')}
- Answer key / rubric: {answer_key}

INSTRUCTIONS:
1. Find the student's roster code written on the page (usually a short number near the name). If none is visible use null.
2. Read each handwritten answer carefully. The text may be written in {feedback_language}.
3. Compare every answer with the answer key and award points per question.
4. The total score must not exceed {exam.get('total_points')}.
5. Write all feedback in {feedback_language}.

Respond with ONE JSON object and nothing else, in exactly this format:
{{
  "student_code": "<roster code as written, or null>",
  "score": <total points awarded>,
  "question_results": [
    {{
      "question_number": 1,
      "points_awarded": <points>,
      "max_points": <points>,
      "is_correct": <true or false>,
      "feedback": "<short feedback for this question>"
    }}
  ],
  "feedback": "<overall feedback for the student>"
}}"""


def check_exam_contract(exam):
    """Raise ExamContractError if the exam can't be sent to the oracle.

    An empty answer key ({} or []) is allowed; judging a submission without a
    rubric is left to the model.
    """
    if not isinstance(exam, dict):
        raise ExamContractError("Exam record is required for grading")
    missing = [name for name in REQUIRED_EXAM_FIELDS if exam.get(name) in (None, '')]
    if missing:
        raise ExamContractError("Exam is missing grading metadata: " + ", ".join(missing))


# =============================================================================
# RESULT NORMALIZATION
# =============================================================================

def _safe_score(value):
    """Coerce a model-supplied score to a number, 0 when unusable."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if number != number or number < 0:  # NaN or negative
        return 0
    return int(number) if number.is_integer() else number


def _normalize_question(item, index):
    return {
        "question_number": item.get('question_number', index),
        "points_awarded": _safe_score(item.get('points_awarded')),
        "max_points": _safe_score(item.get('max_points')),
        "is_correct": bool(item.get('is_correct', False)),
        "feedback": str(item.get('feedback') or ''),
    }


def normalize_grading_result(data: dict) -> GradingResult:
    """Build a GradingResult from parsed JSON, tolerating missing or odd fields."""
    code = data.get('student_code')
    code = str(code).strip() if code is not None else ''

    questions = data.get('question_results')
    if not isinstance(questions, list):
        questions = []
    questions = [
        _normalize_question(item, i)
        for i, item in enumerate(questions, start=1)
        if isinstance(item, dict)
    ]

    feedback = data.get('feedback')
    return GradingResult(
        student_code=code or None,
        score=_safe_score(data.get('score')),
        feedback=str(feedback) if feedback is not None else '',
        question_results=questions,
    )


def _has_grading_schema(data):
    """The object must at least carry a numeric total score."""
    score = data.get('score')
    if score is None or isinstance(score, bool):
        return False
    try:
        float(score)
    except (TypeError, ValueError):
        return False
    return True


def parse_oracle_response(text) -> GradingResult:
    """Parse raw model output, falling back to the degraded result.

    A reply cut off mid-way can still contain complete per-question objects,
    so an object without a score is treated as unparseable.
    """
    data = extract_json_object(text)
    if data is None:
        logger.warning("Oracle response contained no JSON object (%d chars)", len(text or ''))
        return GradingResult.degraded_result()
    if not _has_grading_schema(data):
        logger.warning("Oracle response JSON has no usable score (keys: %s)", ", ".join(sorted(data)))
        return GradingResult.degraded_result()
    return normalize_grading_result(data)


# =============================================================================
# PROVIDERS
# =============================================================================

def _complete_with_anthropic(client, model, prompt, image_data, media_type, max_tokens):
    """Send one image + instruction turn to the Anthropic Messages API."""
    if media_type == 'application/pdf':
        attachment = {
            "type": "document",
            "source": {"type": "base64", "media_type": media_type, "data": image_data},
        }
    else:
        attachment = {
            "type": "image",
            "source": {"type": "base64", "media_type": media_type, "data": image_data},
        }

    response = client.messages.create(
        model=model,
        max_tokens=max_tokens,
        messages=[{"role": "user", "content": [attachment, {"type": "text", "text": prompt}]}],
    )
    return ''.join(block.text for block in response.content if getattr(block, 'type', '') == 'text')


def _complete_with_openai(client, model, prompt, image_data, media_type, max_tokens):
    """Send one image + instruction turn to the OpenAI Chat Completions API."""
    data_url = f"data:{media_type};base64,{image_data}"
    if media_type == 'application/pdf':
        attachment = {"type": "file", "file": {"filename": "submission.pdf", "file_data": data_url}}
    else:
        attachment = {"type": "image_url", "image_url": {"url": data_url}}

    response = client.chat.completions.create(
        model=model,
        max_tokens=max_tokens,
        temperature=0.2,
        messages=[{"role": "user", "content": [{"type": "text", "text": prompt}, attachment]}],
    )
    return response.choices[0].message.content or ''


def _make_client(provider, api_key, timeout):
    if provider == 'openai':
        from openai import OpenAI
        return OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
    import anthropic
    return anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)


_COMPLETERS = {
    'anthropic': _complete_with_anthropic,
    'openai': _complete_with_openai,
}


class GradingOracle:
    """Vision-model grader.

    transport, when given, replaces the provider call: it receives
    (prompt, base64_image, media_type) and returns the raw model text.
    """

    def __init__(self, provider='anthropic', api_key='', model=None,
                 timeout=DEFAULT_ORACLE_TIMEOUT, max_tokens=DEFAULT_ORACLE_MAX_TOKENS,
                 feedback_language=DEFAULT_FEEDBACK_LANGUAGE, transport=None):
        if provider not in ORACLE_PROVIDERS:
            raise ValueError(f"Unknown oracle provider: {provider}")
        self.provider = provider
        self.api_key = api_key
        self.model = model or DEFAULT_MODELS[provider]
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.feedback_language = feedback_language
        self._transport = transport
        self._client = None

    @classmethod
    def from_config(cls, config, transport=None):
        return cls(
            provider=config.oracle_provider,
            api_key=config.oracle_api_key,
            model=config.oracle_model or None,
            timeout=config.oracle_timeout,
            max_tokens=config.oracle_max_tokens,
            feedback_language=config.feedback_language,
            transport=transport,
        )

    def _complete(self, prompt, image_data, media_type):
        if self._transport is not None:
            return self._transport(prompt, image_data, media_type)
        if self._client is None:
            self._client = _make_client(self.provider, self.api_key, self.timeout)
        completer = _COMPLETERS[self.provider]
        return completer(self._client, self.model, prompt, image_data, media_type, self.max_tokens)

    def grade(self, exam: dict, image_bytes: bytes, media_type: str) -> GradingResult:
        check_exam_contract(exam)
        prompt = build_grading_prompt(exam, self.feedback_language)
        image_data = base64.b64encode(image_bytes).decode('utf-8')

        logger.info("Grading exam %s with %s (%s)", exam.get('id'), self.provider, self.model)
        try:
            response_text = self._complete(prompt, image_data, media_type)
        except Exception as e:
            logger.error("Oracle call failed for exam %s: %s", exam.get('id'), e)
            return GradingResult.degraded_result()

        try:
            return parse_oracle_response(response_text)
        except Exception as e:
            logger.error("Could not interpret oracle response for exam %s: %s", exam.get('id'), e)
            return GradingResult.degraded_result()
