from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

LearningMode = Literal["beginner", "intermediate", "advanced"]


class CamelModel(BaseModel):
    # Request bodies are validated before the handler resolves credentials, so a
    # body with a missing field is rejected with 400 even when no API key is set.
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())


class AuthStatus(BaseModel):
    requiresAuth: bool


class AuthResult(BaseModel):
    success: bool
    message: str


class ChatMessage(BaseModel):
    role: str
    content: Any


class ChatRequest(CamelModel):
    messages: list[ChatMessage] = Field(..., min_length=1)
    use_stream: bool = Field(True, alias="useStream")


class GrammarAnalysisRequest(CamelModel):
    sentence: str = Field(..., min_length=1)
    tokens: list[Any]
    model: Optional[str] = None
    api_url: Optional[str] = Field(None, alias="apiUrl")
    stream: bool = False


class WordDetailRequest(CamelModel):
    word: str = Field(..., min_length=1)
    pos: str = Field(..., min_length=1)
    sentence: str = Field(..., min_length=1)
    furigana: Optional[str] = None
    romaji: Optional[str] = None
    model: Optional[str] = None
    api_url: Optional[str] = Field(None, alias="apiUrl")
    use_stream: bool = Field(False, alias="useStream")
    learning_mode: LearningMode = Field("intermediate", alias="learningMode")


class TtsRequest(CamelModel):
    text: str = Field(..., min_length=1)
    voice: str = "Kore"
    model: Optional[str] = None
    provider: Literal["gemini", "edge"] = "gemini"
    gender: Literal["male", "female"] = "female"
    rate: int = 0


class TtsResponse(BaseModel):
    audio: str
    mimeType: str


class TokenData(BaseModel):
    word: str
    pos: str = ""
    furigana: Optional[str] = None
    romaji: Optional[str] = None


class BatchTranslateRequest(CamelModel):
    tokens: list[TokenData] = Field(..., min_length=1)
    model: Optional[str] = None
    api_url: Optional[str] = Field(None, alias="apiUrl")


class BatchTranslateResponse(BaseModel):
    translations: dict[str, str]
    processed: Optional[int] = None
    successful: Optional[int] = None
