"""텍스트 집계 - 텍스트 + 대화 조회/생성/삭제, 제목 추출, 대화 컨텍스트 생성"""
from typing import List, Optional, Sequence
import asyncio
import logging
import re
import unicodedata

from ..config import (
    TITLE_MAX_LENGTH,
    CONTEXT_TEXT_LIMIT,
    CONTEXT_PROMPT_LIMIT,
    CONTEXT_RESPONSE_LIMIT,
    CONTEXT_MAX_CONVERSATIONS,
)
from ..database import Database
from ..database.schemas import (
    Conversation,
    ConversationCreate,
    TextCreate,
    TextKind,
    TextWithConversations,
)
from .schemas import TextDraft

logger = logging.getLogger(__name__)

HTML_TAG_PATTERN = re.compile(r"<[^>]*>")
WORD_SPLIT_PATTERN = re.compile(r"[^a-z0-9]+")

# 제목에서 뺄 지시어 / 기능어 (3글자 미만 단어는 길이로 이미 제외됨)
TITLE_STOPWORDS = {
    "generate", "create", "make", "write", "explain", "summarize", "summarise",
    "summary", "text", "about", "the", "and", "for", "with", "from", "into",
    "please", "short", "brief",
}

TITLE_PREFIXES = {
    TextKind.SUMMARY: "Summary: ",
    TextKind.TEXT: "Text: ",
}

DEFAULT_TITLE = "Generated Content"


# ============================================
# 문자열 헬퍼 (순수 함수)
# ============================================

def _strip_html(value: str) -> str:
    return HTML_TAG_PATTERN.sub("", value or "")


def _cut(value: str, limit: int) -> str:
    return value[:limit] + "..." if len(value) > limit else value


def _remove_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def extract_title_from_prompt(prompt: str, kind: TextKind = TextKind.TEXT) -> str:
    """생성 프롬프트에서 제목 추출

    HTML / 악센트 제거 -> 소문자 단어 분리 -> 3글자 미만 단어와 불용어 제거
    -> 단어 첫 글자 대문자 -> TITLE_MAX_LENGTH 초과 시 "..." -> 종류별 접두어
    """
    plain = _remove_accents(_strip_html(prompt)).lower()
    words = [w for w in WORD_SPLIT_PATTERN.split(plain) if len(w) > 2 and w not in TITLE_STOPWORDS]

    title = " ".join(w[0].upper() + w[1:] for w in words).strip() or DEFAULT_TITLE
    if len(title) > TITLE_MAX_LENGTH:
        title = title[:TITLE_MAX_LENGTH].strip() + "..."

    return TITLE_PREFIXES[TextKind(kind)] + title


def build_conversation_context(original_text: str, previous: Sequence[Conversation]) -> str:
    """후속 질문용 컨텍스트 (원문 일부 + 최근 대화 몇 개)"""
    context = f'Original text: "{_cut(_strip_html(original_text), CONTEXT_TEXT_LIMIT)}"'

    recent = list(previous)[-CONTEXT_MAX_CONVERSATIONS:]
    if recent:
        context += "\n\nPrevious interactions:\n"
        for i, conversation in enumerate(recent, start=1):
            context += f'{i}. Question: "{_cut(_strip_html(conversation.prompt), CONTEXT_PROMPT_LIMIT)}"\n'
            context += f'   Answer: "{_cut(_strip_html(conversation.response), CONTEXT_RESPONSE_LIMIT)}"\n'
    return context


# ============================================
# 조회
# ============================================

async def get_texts_with_conversations(db: Database, user_id: str) -> List[TextWithConversations]:
    try:
        return await db.texts.find_by_user_id_with_conversations(user_id)
    except Exception as e:
        logger.error(f"[TextAggregator] ❌ 텍스트 목록 조회 실패 (user={user_id}): {e}")
        raise


async def get_text_with_conversations(db: Database, text_id: str) -> Optional[TextWithConversations]:
    try:
        return await db.texts.find_by_id_with_conversations(text_id)
    except Exception as e:
        logger.error(f"[TextAggregator] ❌ 텍스트 조회 실패 ({text_id}): {e}")
        raise


async def get_saved_texts(db: Database, user_id: str) -> List[TextWithConversations]:
    """저장한 텍스트 + 대화

    NOTE: 텍스트마다 대화 조회를 한 번씩 더 합니다 (N+1).
    """
    try:
        texts = await db.texts.find_saved_by_user_id(user_id)
        conversations = await asyncio.gather(*(db.conversations.find_by_text_id(t.id) for t in texts))
        return [
            TextWithConversations(**text.model_dump(), conversations=items)
            for text, items in zip(texts, conversations)
        ]
    except Exception as e:
        logger.error(f"[TextAggregator] ❌ 저장 텍스트 조회 실패 (user={user_id}): {e}")
        raise


# ============================================
# 쓰기
# ============================================

async def create_text(db: Database, user_id: str, draft: TextDraft) -> TextWithConversations:
    try:
        title = draft.title or extract_title_from_prompt(draft.original_prompt, draft.kind)
        text = await db.texts.create(TextCreate(
            user_id=user_id,
            title=title,
            content=draft.content,
            kind=draft.kind,
            original_prompt=draft.original_prompt,
            saved=False,
        ))
        logger.info(f"[TextAggregator] ✅ 텍스트 생성: {text.id} ({title})")
        return TextWithConversations(**text.model_dump(), conversations=[])
    except Exception as e:
        logger.error(f"[TextAggregator] ❌ 텍스트 생성 실패 (user={user_id}): {e}")
        raise


async def add_conversation(db: Database, text_id: str, prompt: str, response: str) -> Conversation:
    try:
        return await db.conversations.create(ConversationCreate(text_id=text_id, prompt=prompt, response=response))
    except Exception as e:
        logger.error(f"[TextAggregator] ❌ 대화 추가 실패 ({text_id}): {e}")
        raise


async def toggle_saved(db: Database, text_id: str) -> Optional[TextWithConversations]:
    """saved 반전 후 대화 포함 텍스트 반환 (텍스트가 없으면 None)"""
    try:
        updated = await db.texts.toggle_saved(text_id)
        if updated is None:
            return None
        return await db.texts.find_by_id_with_conversations(text_id)
    except Exception as e:
        logger.error(f"[TextAggregator] ❌ 저장 상태 변경 실패 ({text_id}): {e}")
        raise


async def delete_text(db: Database, text_id: str) -> bool:
    """대화를 하나씩 삭제한 뒤 텍스트 삭제"""
    try:
        conversations = await db.conversations.find_by_text_id(text_id)
        for conversation in conversations:
            await db.conversations.delete_by_id(conversation.id)
        return await db.texts.delete_by_id(text_id)
    except Exception as e:
        logger.error(f"[TextAggregator] ❌ 텍스트 삭제 실패 ({text_id}): {e}")
        raise
