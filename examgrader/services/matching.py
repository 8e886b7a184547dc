"""
Student reconciliation: map a roster code read off a submission to a student.

Matchers are small strategy objects so a different policy (edit distance,
exact match) can replace the default without touching the upsert logic.
"""
import logging

logger = logging.getLogger(__name__)


def _normalize_code(code):
    return str(code or '').strip().lower()


class CodeMatcher:
    """Base strategy. Subclasses decide whether one roster entry matches a code."""

    def matches(self, extracted: str, roster_code: str) -> bool:
        raise NotImplementedError

    def resolve(self, roster, extracted_code):
        """Return the id of the single matching student, or None.

        A single exact code match wins over looser matches. Zero matches and
        ambiguous matches both count as a failed reconciliation; nothing is raised.
        """
        extracted = _normalize_code(extracted_code)
        if not extracted:
            return None

        exact = [s for s in roster or [] if _normalize_code(s.get('student_code')) == extracted]
        if len(exact) == 1:
            return exact[0].get('id')

        hits = []
        for student in roster or []:
            roster_code = _normalize_code(student.get('student_code'))
            if roster_code and self.matches(extracted, roster_code):
                hits.append(student)

        if len(hits) == 1:
            return hits[0].get('id')
        if hits:
            logger.info("Code %r is ambiguous (%d roster matches)", extracted_code, len(hits))
        else:
            logger.info("Code %r matched no roster entry", extracted_code)
        return None


class SubstringCodeMatcher(CodeMatcher):
    """Loose match for noisy OCR: either code contains the other (case-insensitive)."""

    def matches(self, extracted, roster_code):
        return extracted in roster_code or roster_code in extracted
