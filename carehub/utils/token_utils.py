"""
Token utilities using tiktoken

FLOW OVERVIEW
- get_encoding_for_model(model): Resolve tiktoken encoding for a given model.
- count_tokens(text, model): Return token count using tiktoken for the given model.
- count_message_tokens(messages, model): Sum of content tokens across chat messages.
"""

from typing import Dict, List

import tiktoken


def get_encoding_for_model(model: str):
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        # Fallback to cl100k_base used by GPT-3.5/4 and text-embedding-3 models
        return tiktoken.get_encoding('cl100k_base')


def count_tokens(text: str, model: str = 'gpt-3.5-turbo') -> int:
    if not text:
        return 0
    enc = get_encoding_for_model(model)
    return len(enc.encode(text))


def count_message_tokens(messages: List[Dict[str, str]], model: str = 'gpt-3.5-turbo') -> int:
    return sum(count_tokens(message.get('content') or '', model) for message in messages)
