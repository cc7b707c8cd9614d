import os
import logging
from typing import Any, Optional, Union

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from interviewcall.config import LLMConfig
from interviewcall.feedback import FeedbackGenerationError, generate_feedback
from interviewcall.questions import QuestionGenerationError, generate_questions
from interviewcall.store import (
    InMemoryInterviewStore,
    InterviewStore,
    build_feedback_record,
    build_interview_record,
)
from interviewcall.validation import parse_techstack

load_dotenv()

logger = logging.getLogger(__name__)


class GenerateRequest(BaseModel):
    type: Optional[str] = None
    role: Optional[str] = None
    level: Optional[str] = None
    techstack: Any = None
    amount: Optional[Union[int, str]] = None
    userid: Optional[str] = None


class FeedbackRequest(BaseModel):
    interviewId: Optional[str] = None
    userId: Optional[str] = None
    transcript: list[dict] = []


def create_app(
    store: InterviewStore | None = None,
    llm_config: LLMConfig | None = None,
) -> FastAPI:
    app = FastAPI(title="Interview Call Backend")
    app.state.store = store if store is not None else InMemoryInterviewStore()
    app.state.llm_config = llm_config if llm_config is not None else LLMConfig.from_env()

    @app.get("/health")
    async def health():
        return PlainTextResponse("ok")

    @app.get("/api/vapi/generate")
    async def generate_info():
        return {"success": True, "data": "Thank you!"}

    @app.post("/api/vapi/generate")
    async def generate(body: GenerateRequest):
        """Generate interview questions and persist the interview once."""
        logger.info(
            "POST /api/vapi/generate: role=%r type=%r level=%r techstack=%r amount=%r userid=%r",
            body.role, body.type, body.level, body.techstack, body.amount, body.userid,
        )
        if not body.type or not body.role or not body.level or not body.amount:
            return JSONResponse(
                {"success": False, "error": "Missing required fields"},
                status_code=400,
            )

        techstack = parse_techstack(body.techstack)
        try:
            questions = await generate_questions(
                app.state.llm_config,
                role=body.role,
                type=body.type,
                level=body.level,
                techstack=techstack,
                amount=body.amount,
            )
        except QuestionGenerationError as e:
            return JSONResponse({"success": False, "error": str(e)}, status_code=500)

        record = build_interview_record(
            role=body.role,
            type=body.type,
            level=body.level,
            techstack=techstack,
            questions=questions,
            user_id=body.userid,
            include_user="userid" in body.model_fields_set,
        )
        try:
            interview_id = await app.state.store.add(record)
        except Exception as e:
            logger.error("Failed to save interview: %s", e)
            return JSONResponse({"success": False, "error": str(e)}, status_code=500)

        return {"success": True, "interviewId": interview_id}

    @app.get("/api/interviews")
    async def interviews_by_user(userId: str):
        return await app.state.store.list_by_user(userId)

    @app.get("/api/interviews/latest")
    async def latest_interviews(userId: str, limit: int = 20):
        return await app.state.store.list_latest(userId, limit=limit)

    @app.get("/api/interviews/{interview_id}")
    async def get_interview(interview_id: str):
        record = await app.state.store.get(interview_id)
        if record is None:
            return JSONResponse({"success": False, "error": "Interview not found"}, status_code=404)
        return record

    @app.get("/api/interviews/{interview_id}/feedback")
    async def get_interview_feedback(interview_id: str):
        feedback = await app.state.store.get_feedback_by_interview(interview_id)
        if feedback is None:
            return JSONResponse({"success": False, "error": "Feedback not found"}, status_code=404)
        return feedback

    @app.post("/api/feedback")
    async def create_feedback(body: FeedbackRequest):
        """Score a finished interview from its transcript and store the result."""
        logger.info(
            "POST /api/feedback: interviewId=%r userId=%r entries=%d",
            body.interviewId, body.userId, len(body.transcript),
        )
        if not body.interviewId or not body.transcript:
            return JSONResponse(
                {"success": False, "error": "Missing required fields"},
                status_code=400,
            )
        if await app.state.store.get(body.interviewId) is None:
            return JSONResponse({"success": False, "error": "Interview not found"}, status_code=404)

        try:
            feedback = await generate_feedback(app.state.llm_config, body.transcript)
        except FeedbackGenerationError as e:
            return JSONResponse({"success": False, "error": str(e)}, status_code=500)

        record = build_feedback_record(body.interviewId, body.userId, feedback)
        try:
            feedback_id = await app.state.store.add_feedback(record)
        except Exception as e:
            logger.error("Failed to save feedback: %s", e)
            return JSONResponse({"success": False, "error": str(e)}, status_code=500)

        return {"success": True, "feedbackId": feedback_id}

    return app


app = create_app()


def main():
    from interviewcall.config import validate_config

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    validate_config()
    port = int(os.getenv("PORT", "8765"))
    uvicorn.run("interviewcall.app:app", host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
