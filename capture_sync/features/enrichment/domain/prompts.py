# File: capture_sync/features/enrichment/domain/prompts.py

SUMMARY_SYSTEM_PROMPT = "you are a helpful assistant that summarizes meetings."

DEFAULT_SUMMARY_PROMPT = "please provide a concise summary of the following meeting transcript"

PARTICIPANTS_SYSTEM_PROMPT = """you are an assistant that identifies participants in meeting transcripts. your goal is to provide a list of one or two or more word names or roles or characteristics.

for example your response could be:
Bob Smith (marketing), John Doe (sales), Jane Smith (ceo)
"""

DEFAULT_PARTICIPANTS_PROMPT = (
    "please identify the participants in this meeting transcript. provide a comma-separated list "
    "of one or two word names or roles or characteristics. if it's not possible to identify, respond with n/a."
)

NO_PARTICIPANTS = "no participants identified."
