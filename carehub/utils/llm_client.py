"""
OpenAI client wrapper.

Single entry point for embeddings and chat completions used by the policy
assistant, the Notion sync and the profile chat. The typical flow is:

1) Decide between the real provider and a deterministic stub. The stub is used
   when the app runs with TESTING or no OPENAI_API_KEY is configured.
2) Log the outbound call as a structured JSON event with the key masked.
3) Call OpenAI and log the elapsed time and usage.

Provider errors propagate; callers decide on fallbacks.
"""

import hashlib
import json
import logging
import time
from typing import Dict, List, Optional

import numpy as np
from flask import current_app, has_app_context
from openai import OpenAI

from .token_utils import count_message_tokens

DEFAULT_EMBEDDING_MODEL = 'text-embedding-3-small'
DEFAULT_CHAT_MODEL = 'gpt-3.5-turbo'
STUB_EMBEDDING_DIMENSIONS = 1536


class LLMClient:
    """OpenAI embeddings and chat completions with a stub for tests."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def _config(self, key, default=None):
        if has_app_context():
            return current_app.config.get(key, default)
        return default

    @property
    def api_key(self) -> Optional[str]:
        return self._config('OPENAI_API_KEY')

    def is_enabled(self) -> bool:
        """True when real OpenAI calls will be made"""
        return bool(self.api_key) and not self._config('TESTING', False)

    def _masked_key(self) -> str:
        key = self.api_key or ''
        return f"***{key[-4:]}" if len(key) >= 4 else "***"

    def _client(self) -> OpenAI:
        return OpenAI(api_key=self.api_key)

    def create_embedding(self, text: str, model: str = None) -> List[float]:
        """Embed text and return the float vector"""
        model = model or self._config('EMBEDDING_MODEL', DEFAULT_EMBEDDING_MODEL)

        if not self.is_enabled():
            self.logger.info(f"Using stub embedding (testing or no OPENAI_API_KEY). model={model}")
            return self._stub_embedding(text)

        self.logger.info(
            json.dumps({
                'event': 'openai_embedding_start',
                'provider': 'openai',
                'model': model,
                'text_len': len(text or ''),
                'api_key_last4': self._masked_key(),
            })
        )
        started_at = time.time()
        response = self._client().embeddings.create(
            model=model,
            input=text,
            encoding_format='float',
        )
        elapsed_ms = int((time.time() - started_at) * 1000)
        self.logger.info(
            json.dumps({
                'event': 'openai_embedding_success',
                'provider': 'openai',
                'model': model,
                'elapsed_ms': elapsed_ms,
            })
        )
        return list(response.data[0].embedding)

    def chat_completion(self, messages: List[Dict[str, str]], model: str = None,
                        max_tokens: int = 500, temperature: float = 0.3) -> Optional[str]:
        """Return the first choice's message content (may be None or empty)"""
        model = model or self._config('CHAT_MODEL', DEFAULT_CHAT_MODEL)

        if not self.is_enabled():
            self.logger.info(f"Using stub chat completion (testing or no OPENAI_API_KEY). model={model}, temperature={temperature}")
            last_user = next((m['content'] for m in reversed(messages) if m.get('role') == 'user'), '')
            return f"Mock LLM response for: {last_user[:50]}..."

        self.logger.info(
            json.dumps({
                'event': 'openai_request_start',
                'provider': 'openai',
                'model': model,
                'temperature': temperature,
                'max_tokens': max_tokens,
                'message_count': len(messages),
                'prompt_tokens_estimate': count_message_tokens(messages, model),
                'api_key_last4': self._masked_key(),
            })
        )
        started_at = time.time()
        completion = self._client().chat.completions.create(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        elapsed_ms = int((time.time() - started_at) * 1000)

        usage = getattr(completion, 'usage', None)
        self.logger.info(
            json.dumps({
                'event': 'openai_request_success',
                'provider': 'openai',
                'model': model,
                'elapsed_ms': elapsed_ms,
                'api_key_last4': self._masked_key(),
                'usage': {
                    'prompt_tokens': getattr(usage, 'prompt_tokens', 0) or 0,
                    'completion_tokens': getattr(usage, 'completion_tokens', 0) or 0,
                    'total_tokens': getattr(usage, 'total_tokens', 0) or 0,
                },
            })
        )

        if not completion.choices:
            return None
        return completion.choices[0].message.content

    @staticmethod
    def _stub_embedding(text: str) -> List[float]:
        """Deterministic unit vector seeded from the text"""
        seed = int(hashlib.sha256((text or '').encode('utf-8')).hexdigest()[:8], 16)
        vector = np.random.RandomState(seed).standard_normal(STUB_EMBEDDING_DIMENSIONS)
        vector = vector / np.linalg.norm(vector)
        return vector.tolist()


# Global instance
llm_client = LLMClient()
