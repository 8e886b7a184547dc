"""
Exam Grader Services
====================

Business logic for the exam grader.

Services:
- grading: submission workflow (oracle -> reconciliation -> upsert)
- oracle: vision-model grading adapter
- matching: roster-code reconciliation strategies
- json_extract: JSON object extraction from model output
- analysis: class grade statistics
"""

# Services are imported directly when needed
# Example: from examgrader.services.grading import process_submission

__all__ = [
    'grading',
    'oracle',
    'matching',
    'json_extract',
    'analysis',
]
