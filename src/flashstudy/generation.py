"""Client for the hosted generation service.

The service exposes one JSON endpoint per tool. Replies are validated against
pydantic models before they reach the rest of the app; anything that does not
fit raises GenerationError.
"""
import logging
from typing import Literal, Optional

import httpx
from pydantic import BaseModel, ValidationError

from flashstudy.errors import GenerationError

logger = logging.getLogger(__name__)

Difficulty = Literal["easy", "medium", "hard"]


class GeneratedFlashcard(BaseModel):
    front: str
    back: str
    difficulty: Difficulty
    tags: Optional[list[str]] = None


class FlashcardBatch(BaseModel):
    flashcards: list[GeneratedFlashcard]


class QuizQuestion(BaseModel):
    type: Literal["multiple_choice", "true_false", "fill_blank", "short_answer"]
    question: str
    options: Optional[list[str]] = None
    correct_answer: str
    explanation: str
    difficulty: Difficulty
    topic: str


class Quiz(BaseModel):
    questions: list[QuizQuestion]


class CardRecommendation(BaseModel):
    card_id: str
    next_review_hours: float
    difficulty_adjustment: Literal["increase", "decrease", "maintain"]
    focus_reason: str
    study_tip: str


class DifficultyDistribution(BaseModel):
    easy: float
    medium: float
    hard: float


class OverallStrategy(BaseModel):
    focus_areas: list[str]
    recommended_session_length: float
    difficulty_distribution: DifficultyDistribution


class AdaptivePlan(BaseModel):
    recommendations: list[CardRecommendation]
    overall_strategy: OverallStrategy


class Recommendation(BaseModel):
    type: Literal["focus_area", "study_method", "difficulty_adjustment", "time_management"]
    title: str
    description: str
    priority: Literal["high", "medium", "low"]


class RecommendationList(BaseModel):
    recommendations: list[Recommendation]


class Explanation(BaseModel):
    explanation: str


class StudyGuide(BaseModel):
    studyGuide: str


class GenerationClient:
    def __init__(self, base_url: str, api_key: str | None = None, timeout: float = 60.0,
                 transport: httpx.BaseTransport | None = None):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.Client(base_url=base_url, headers=headers, timeout=timeout,
                                    transport=transport)

    @classmethod
    def from_config(cls, config) -> "GenerationClient":
        if not config.api_url:
            raise GenerationError("FLASHSTUDY_API_URL is not configured")
        return cls(config.api_url, api_key=config.api_key, timeout=config.api_timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _post(self, path: str, payload: dict, model: type[BaseModel]):
        try:
            resp = self._client.post(path, json=payload)
            resp.raise_for_status()
            return model.model_validate(resp.json())
        except httpx.HTTPError as e:
            logger.error("Generation request to %s failed: %s", path, e)
            raise GenerationError(f"Request to {path} failed: {e}") from e
        except (ValueError, ValidationError) as e:
            logger.error("Generation reply from %s did not match the expected shape: %s", path, e)
            raise GenerationError(f"Unexpected reply from {path}") from e

    def generate_flashcards(self, content: str, subject: str, count: int = 10) -> list[GeneratedFlashcard]:
        if not content.strip() or not subject.strip():
            raise ValueError("Content and subject are required")
        batch = self._post(
            "/api/ai/generate-flashcards",
            {"content": content, "subject": subject, "count": count},
            FlashcardBatch,
        )
        return batch.flashcards

    def generate_quiz(self, deck_id: int, question_count: int = 10,
                      question_types=("multiple_choice",), difficulty: str = "medium") -> list[QuizQuestion]:
        quiz = self._post(
            "/api/ai/generate-quiz",
            {
                "deckId": deck_id,
                "questionCount": question_count,
                "questionTypes": list(question_types),
                "difficulty": difficulty,
            },
            Quiz,
        )
        return quiz.questions

    def adaptive_plan(self, deck_id: int) -> AdaptivePlan:
        return self._post("/api/ai/adaptive-learning", {"deckId": deck_id}, AdaptivePlan)

    def get_recommendations(self) -> list[Recommendation]:
        return self._post("/api/ai/get-recommendations", {}, RecommendationList).recommendations

    def explain_concept(self, concept: str, context: str | None = None, difficulty: str = "medium") -> str:
        reply = self._post(
            "/api/ai/explain-concept",
            {"concept": concept, "context": context, "difficulty": difficulty},
            Explanation,
        )
        return reply.explanation

    def generate_study_guide(self, deck_id: int, topic: str) -> str:
        reply = self._post(
            "/api/ai/generate-study-guide", {"deckId": deck_id, "topic": topic}, StudyGuide
        )
        return reply.studyGuide
