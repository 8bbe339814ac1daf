# Wire schema and score transformation for the scoring backend
from .schemas import SubmissionPayload, ValidationResult
from .transformer import calculate_industry_scores, transform, validate
