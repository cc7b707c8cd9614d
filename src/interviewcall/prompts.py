QUESTIONS_PROMPT = """Prepare questions for a job interview.
The job role is {role}.
The job experience level is {level}.
The tech stack used in the job is: {techstack}.
The focus between behavioural and technical questions should lean towards: {type}.
The amount of questions required is: {amount}.
Please return only the questions, without any additional text.
The questions are going to be read by a voice assistant so do not use "/" or "*" or any other special characters which might break the voice assistant.
Return the questions formatted like this:
["Question 1", "Question 2", "Question 3"]"""


def get_questions_prompt(role: str, type: str, level: str, techstack: list[str], amount) -> str:
    return QUESTIONS_PROMPT.format(
        role=role,
        level=level,
        techstack=", ".join(techstack) if techstack else "not specified",
        type=type,
        amount=amount,
    )


FEEDBACK_CATEGORIES = (
    "Communication Skills",
    "Technical Knowledge",
    "Problem Solving",
    "Cultural Fit",
    "Confidence and Clarity",
)

FEEDBACK_PROMPT = """You are an AI interviewer analyzing a mock interview. Your task is to evaluate the candidate based on structured categories. Be thorough and detailed in your analysis. Don't be lenient with the candidate. If there are mistakes or areas for improvement, point them out.
Transcript:
{transcript}

Score the candidate from 0 to 100 in the following areas. Do not add categories other than the ones provided:
{categories}

Respond with a single JSON object and nothing else, formatted like this:
{{"totalScore": 0, "categoryScores": [{{"name": "Communication Skills", "score": 0, "comment": ""}}], "strengths": [""], "areasForImprovement": [""], "finalAssessment": ""}}"""


def get_feedback_prompt(transcript: list[dict]) -> str:
    lines = "\n".join(f"- {entry['role']}: {entry['content']}" for entry in transcript)
    categories = "\n".join(f"- {name}" for name in FEEDBACK_CATEGORIES)
    return FEEDBACK_PROMPT.format(transcript=lines, categories=categories)
