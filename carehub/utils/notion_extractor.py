"""
Notion policy extraction and embedding sync.

FLOW OVERVIEW
- extract_all_pages(database_id)
  1) POST databases/{id}/query with page_size=100, following start_cursor.
  2) For every result with properties: title, rendered block content and metadata.
  3) Sleep NOTION_PAGE_DELAY between result pages.
- process_and_store_pages(pages)
  • Embed each page's content and upsert by notion_page_id; errors are counted, not raised.
  • Sleep EMBEDDING_DELAY between pages; record a `sync` status row at the end.
- sync_notion_content(database_id): extract, then process and store.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from flask import current_app

from ..models import db, PolicyEmbedding, RagSystemStatus
from .llm_client import llm_client

NOTION_API_URL = 'https://api.notion.com/v1/'
NOTION_VERSION = '2022-06-28'
PAGE_SIZE = 100
MAX_EMBEDDING_CHARS = 8000
TITLE_PROPERTIES = ('Name', 'Title', 'name', 'title')


class NotionAPIError(Exception):
    """Non-2xx response from the Notion API"""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Notion API error: {status_code} - {body}")


@dataclass
class NotionPage:
    id: str
    title: str
    content: str
    metadata: Dict[str, Any]
    last_edited: Optional[str]


def _plain_text(rich_text) -> str:
    return ''.join(item.get('plain_text') or '' for item in (rich_text or []))


def render_block(block: Dict[str, Any]) -> str:
    """Render a single Notion block as plain text"""
    block_type = block.get('type')
    if not block_type:
        return ''
    body = block.get(block_type) or {}
    text = _plain_text(body.get('rich_text'))

    if block_type == 'paragraph':
        return text
    if block_type == 'heading_1':
        return f"# {text}"
    if block_type == 'heading_2':
        return f"## {text}"
    if block_type == 'heading_3':
        return f"### {text}"
    if block_type == 'bulleted_list_item':
        return f"• {text}"
    if block_type == 'numbered_list_item':
        return f"1. {text}"
    if block_type == 'to_do':
        checked = '[x]' if body.get('checked') else '[ ]'
        return f"{checked} {text}"
    if block_type == 'code':
        language = body.get('language') or ''
        return f"```{language}\n{text}\n```"
    if block_type == 'quote':
        return f"> {text}"
    if block_type == 'divider':
        return '---'
    if block_type == 'table':
        return '[Table content]'
    if block_type == 'image':
        return '[Image]'
    if block_type == 'file':
        return '[File attachment]'
    if block_type == 'bookmark':
        return body.get('url') or '[Bookmark]'
    if block_type == 'link_preview':
        return body.get('url') or '[Link]'
    # Unsupported types: any rich_text they carry
    return text


def extract_title(page: Dict[str, Any]) -> str:
    properties = page.get('properties') or {}
    for name in TITLE_PROPERTIES:
        title_items = (properties.get(name) or {}).get('title') or []
        if title_items and title_items[0].get('plain_text'):
            return title_items[0]['plain_text']
    return f"Untitled Page ({page['id'][-8:]})"


def extract_metadata(page: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'url': page.get('url'),
        'created_time': page.get('created_time'),
        'last_edited_time': page.get('last_edited_time'),
        'properties': page.get('properties'),
        'archived': page.get('archived'),
        'in_trash': page.get('in_trash'),
    }


class NotionExtractor:
    """Pulls policy pages out of a Notion database and stores their embeddings."""

    def __init__(self, notion_token: str, page_delay: float = 1.0, embedding_delay: float = 0.5):
        if not notion_token:
            raise ValueError('NOTION_API_KEY not configured')
        self.logger = logging.getLogger(__name__)
        self.page_delay = page_delay
        self.embedding_delay = embedding_delay
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f"Bearer {notion_token}",
            'Notion-Version': NOTION_VERSION,
            'Content-Type': 'application/json',
        })

    @classmethod
    def from_config(cls) -> 'NotionExtractor':
        config = current_app.config
        return cls(
            config.get('NOTION_API_KEY'),
            page_delay=config.get('NOTION_PAGE_DELAY', 1.0),
            embedding_delay=config.get('EMBEDDING_DELAY', 0.5),
        )

    def notion_request(self, endpoint: str, method: str = 'GET', payload: Dict[str, Any] = None) -> Dict[str, Any]:
        response = self.session.request(method, NOTION_API_URL + endpoint, json=payload, timeout=30)
        if not response.ok:
            raise NotionAPIError(response.status_code, response.text)
        return response.json()

    def extract_all_pages(self, database_id: str) -> List[NotionPage]:
        if not database_id:
            raise ValueError('Database ID is required')

        pages = []
        start_cursor = None
        self.logger.info(f"Starting extraction from Notion database: {database_id}")

        while True:
            body = {'page_size': PAGE_SIZE}
            if start_cursor:
                body['start_cursor'] = start_cursor
            response = self.notion_request(f"databases/{database_id}/query", method='POST', payload=body)

            results = response.get('results') or []
            self.logger.info(f"Fetched {len(results)} pages from Notion")
            for page in results:
                if 'properties' not in page:
                    continue
                try:
                    pages.append(self.extract_page_data(page))
                except Exception as e:
                    self.logger.error(f"Error extracting page {page.get('id')}: {str(e)}")

            start_cursor = response.get('next_cursor')
            if not response.get('has_more'):
                break
            time.sleep(self.page_delay)

        self.logger.info(f"Successfully extracted {len(pages)} pages from Notion")
        return pages

    def extract_page_data(self, page: Dict[str, Any]) -> NotionPage:
        return NotionPage(
            id=page['id'],
            title=extract_title(page),
            content=self.extract_page_content(page['id']),
            metadata=extract_metadata(page),
            last_edited=page.get('last_edited_time'),
        )

    def extract_page_content(self, page_id: str) -> str:
        try:
            blocks = self.notion_request(f"blocks/{page_id}/children")
            lines = []
            for block in blocks.get('results') or []:
                rendered = render_block(block)
                if rendered.strip():
                    lines.append(rendered)
            return '\n'.join(lines).strip()
        except Exception as e:
            self.logger.error(f"Error extracting content for page {page_id}: {str(e)}")
            return '[Content extraction failed]'

    def create_embedding(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise ValueError('Cannot create embedding for empty text')
        # text-embedding-3-small accepts ~8191 tokens
        return llm_client.create_embedding(text[:MAX_EMBEDDING_CHARS])

    def process_and_store_pages(self, pages: List[NotionPage]) -> Dict[str, int]:
        self.logger.info(f"Processing and storing {len(pages)} pages...")
        processed = 0
        errors = 0

        for index, page in enumerate(pages):
            try:
                embedding = self.create_embedding(page.content)
                row = PolicyEmbedding.query.filter_by(notion_page_id=page.id).first()
                if row is None:
                    row = PolicyEmbedding(notion_page_id=page.id)
                    db.session.add(row)
                row.title = page.title
                row.content = page.content
                row.embedding = embedding
                row.page_metadata = page.metadata
                row.last_updated = page.last_edited
                db.session.commit()
                processed += 1

                if processed % 10 == 0:
                    self.logger.info(f"Processed {processed}/{len(pages)} pages ({errors} errors)")
            except Exception as e:
                db.session.rollback()
                self.logger.error(f"Error processing page {page.id}: {str(e)}")
                errors += 1

            if index < len(pages) - 1:
                time.sleep(self.embedding_delay)

        self.logger.info(f"Completed processing: {processed} successful, {errors} errors")
        self.log_system_status('sync', 'success' if processed > errors else 'error',
                               f"Processed {processed} pages with {errors} errors")
        return {'processed': processed, 'errors': errors}

    def log_system_status(self, operation_type: str, status: str, message: str, metadata=None) -> None:
        try:
            db.session.add(RagSystemStatus(operation_type=operation_type, status=status,
                                           message=message, status_metadata=metadata or {}))
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            self.logger.error(f"Error logging system status: {str(e)}")


def get_sync_status() -> Dict[str, Any]:
    try:
        total = PolicyEmbedding.query.count()
        latest = PolicyEmbedding.query.order_by(PolicyEmbedding.created_at.desc()).first()
        return {
            'totalPolicies': total,
            'lastSync': latest.created_at.isoformat() if latest and latest.created_at else None
        }
    except Exception as e:
        logging.getLogger(__name__).error(f"Error in get_sync_status: {str(e)}")
        return {'totalPolicies': 0, 'lastSync': None}


def sync_notion_content(database_id: str) -> Dict[str, Any]:
    """Extract every page of the database and store embeddings"""
    logger = logging.getLogger(__name__)
    try:
        extractor = NotionExtractor.from_config()
        pages = extractor.extract_all_pages(database_id)
        logger.info(f"Extracted {len(pages)} pages from Notion")
        if not pages:
            return {'success': False, 'error': 'No pages found in the Notion database'}

        counts = extractor.process_and_store_pages(pages)
        return {
            'success': True,
            'message': f"Successfully synced {counts['processed']} pages ({counts['errors']} errors)"
        }
    except Exception as e:
        logger.error(f"Sync error: {str(e)}", exc_info=True)
        return {'success': False, 'error': str(e)}
