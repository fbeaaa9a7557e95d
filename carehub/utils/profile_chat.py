"""
Work-profile chat assistant.

Interviews staff about their work preferences and condenses the conversation
into a first-person work profile, merging with any existing profile.
"""

import logging
import random

from .llm_client import llm_client

DISABLED_CHAT_REPLY = 'AI features are currently disabled. Please contact your administrator to enable OpenAI integration.'
DISABLED_SUMMARY = 'Unable to generate summary. AI features are currently disabled.'
EMPTY_CHAT_REPLY = 'I apologize, but I had trouble processing that. Could you try again?'
FAILED_CHAT_REPLY = "I apologize, but I'm having trouble connecting right now. Please try again in a moment."
EMPTY_SUMMARY = 'Unable to generate summary at this time.'
FAILED_SUMMARY = 'Unable to generate summary at this time. Please try again later.'

MIN_USER_MESSAGES = 3
MIN_USER_CHARACTERS = 200

SYSTEM_PROMPT = """You are a friendly and empathetic AI assistant helping employees share their work preferences and personality traits. Your goal is to understand how the company can best cater to their needs without offering the world.

Guidelines:
- Be conversational, warm, and encouraging
- Ask open-ended questions about work preferences, communication styles, learning preferences, and work environment preferences
- Focus on understanding their personality, work style, and what motivates them
- Keep responses concise but engaging
- Show genuine interest in their responses
- Ask follow-up questions to dig deeper into interesting responses
- Avoid being too formal or corporate - be human-like
- Don't ask too many questions at once - keep it conversational

Start by introducing yourself and explaining that you're here to help the company understand their work preferences better."""

SUMMARY_SYSTEM_PROMPT = (
    'You are an expert HR analyst who creates and updates personalized employee work profiles written in '
    'first person. Use Markdown formatting with bold headings and bullet points. CRITICAL RULES: 1) Only '
    'include information relevant to each section - never force unrelated topics into multiple sections. '
    '2) When MERGING, PRESERVE ALL existing core work sections even if not mentioned in the new conversation '
    '- only update sections with new relevant info. 3) When creating NEW profiles, only include sections '
    'with actual data from the conversation.'
)

SECTIONS = """**Work Style** - collaborative vs independent, structured vs flexible work preferences
**Communication** - communication style and preferences at work
**Learning & Development** - professional growth, training, skill development
**Motivation** - what drives performance and engagement at work
**Environment** - ideal workplace conditions and needs"""

MERGE_PROMPT = """You are updating an employee's work profile with new insights from a recent conversation.

EXISTING WORK PROFILE:
{existing}

NEW CONVERSATION:
{conversation}

TASK: Intelligently merge the new conversation with the existing profile.

CRITICAL RULES FOR MERGING:
1. PRESERVE ALL CORE SECTIONS from the existing profile - do NOT omit them
2. If a core section exists in the EXISTING profile but isn't mentioned in the NEW conversation, KEEP it unchanged
3. ONLY update sections with relevant new information from the conversation
4. DO NOT force unrelated topics into multiple sections
5. New contradictory info takes precedence over old info in that specific section

CORE SECTIONS (ALWAYS include if they exist in the profile):
{sections}

OPTIONAL SECTION:
**Personal Interests** - hobbies, activities, and interests outside work (only include if mentioned in existing or new conversation)

OUTPUT REQUIREMENTS:
- Write in FIRST PERSON using "I" statements
- Use bullet points for clarity
- MUST include all core sections that exist in the EXISTING profile
- Update only sections where new relevant info is provided
- Add Personal Interests section if the new conversation mentions hobbies/non-work topics
- Be concise and natural - avoid repetition
- Keep the warm, authentic voice

Create a complete, merged profile that preserves existing work sections while incorporating new insights."""

NEW_PROMPT = """Please analyze the following conversation and create a concise, professional work profile summary written in FIRST PERSON from the employee's perspective. Use "I" statements throughout.

AVAILABLE SECTIONS (use Markdown formatting):

{sections}
**Personal Interests** - hobbies, activities, and interests outside work

CRITICAL RULES:
- ONLY include sections and information that are mentioned or clearly implied in the conversation
- DO NOT fabricate or assume information not discussed
- DO NOT force topics into sections where they don't naturally fit
- Be concise and natural - avoid repetition
- Include at least one work-related section if any work preferences are mentioned
- Include Personal Interests ONLY if hobbies/non-work activities are mentioned

GUIDELINES:
- Write in a warm, authentic first-person voice
- Use bullet points for clarity
- Keep it professional but personal
- It's acceptable to have a minimal profile if the conversation was brief or off-topic

Conversation:
{conversation}

Create a focused, natural Markdown summary based ONLY on what was actually discussed."""

CONVERSATION_STARTERS = (
    "Hi! I'm here to help your company understand your work preferences better. What aspects of your work do you find most fulfilling?",
    "Hello! I'd love to learn about your work style. What kind of work environment helps you do your best?",
    "Hi there! I'm curious about what motivates you at work. What gets you excited about coming to work each day?",
    "Hello! I'm here to understand your preferences so the company can better support you. What's your ideal way of receiving feedback or recognition?",
)


class ProfileChat:
    """Work-preference interview and profile summarization"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def is_configured(self):
        return bool(llm_client.api_key)

    def chat_response(self, messages):
        if not self.is_configured():
            return DISABLED_CHAT_REPLY
        try:
            if len(messages) == 1 and messages[0].get('role') == 'user':
                messages = [{'role': 'system', 'content': SYSTEM_PROMPT}] + list(messages)
            reply = llm_client.chat_completion(messages, max_tokens=300, temperature=0.7)
            return reply or EMPTY_CHAT_REPLY
        except Exception as e:
            self.logger.error(f"Error getting AI response: {str(e)}")
            return FAILED_CHAT_REPLY

    def summarize_conversation(self, messages, existing_summary=None):
        if not self.is_configured():
            return DISABLED_SUMMARY
        try:
            conversation = '\n'.join(
                f"{m['role']}: {m['content']}" for m in messages if m.get('role') != 'system'
            )
            if existing_summary:
                prompt = MERGE_PROMPT.format(existing=existing_summary, conversation=conversation, sections=SECTIONS)
            else:
                prompt = NEW_PROMPT.format(conversation=conversation, sections=SECTIONS)
            summary = llm_client.chat_completion(
                [
                    {'role': 'system', 'content': SUMMARY_SYSTEM_PROMPT},
                    {'role': 'user', 'content': prompt}
                ],
                max_tokens=800,
                temperature=0.3
            )
            return summary or EMPTY_SUMMARY
        except Exception as e:
            self.logger.error(f"Error summarizing conversation: {str(e)}")
            return FAILED_SUMMARY

    @staticmethod
    def random_starter():
        return random.choice(CONVERSATION_STARTERS)

    @staticmethod
    def should_summarize(messages):
        user_messages = [m for m in messages if m.get('role') == 'user']
        total_content = sum(len(m.get('content') or '') for m in user_messages)
        return len(user_messages) >= MIN_USER_MESSAGES and total_content >= MIN_USER_CHARACTERS


# Global instance
profile_chat = ProfileChat()
