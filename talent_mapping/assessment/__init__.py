# Question bank, answer keys and scoring. The session lives in .session.
from .models import CategoryDefinition, InstrumentDefinition, Progress, QuestionBank, QuestionKey
from .loader import get_question_bank, load_question_bank_data, load_question_bank_from_file
from .scorer import score_all, score_category, score_instrument
