"""
Prompt templates for every AI feature.

Separated from tasks.py for readability and easier iteration. Templates use
str.format placeholders; document excerpts are truncated by the caller to
the *_CHARS limits below before formatting.
"""

# ─── Content budgets ──────────────────────────────────────────────────

CHAT_DOCUMENT_CHARS = 10_000
SUMMARY_DOCUMENT_CHARS = 20_000
CONCEPT_DOCUMENT_CHARS = 15_000
FLASHCARD_DOCUMENT_CHARS = 20_000
QUIZ_DOCUMENT_CHARS = 20_000
OUTREACH_SOURCE_CHARS = 6_000
CHAT_HISTORY_TURNS = 5


# ─── Interview sessions ───────────────────────────────────────────────

INTERVIEW_QUESTIONS_PROMPT = """
You are an expert technical interviewer. Generate {count} high-quality interview questions for a {experience_level} level {job_role} position.

Tech Stack: {tech_stack}

Requirements:
- Questions should be relevant to the role and experience level
- Mix of conceptual, practical, and problem-solving questions
- Questions should test both technical knowledge and problem-solving ability
- Format: Return ONLY a JSON array of question strings, no additional text

Example format:
["Question 1?", "Question 2?"]
""".strip()

ANSWER_PROMPT = """
You are an expert technical interviewer providing model answers. Generate a comprehensive, well-structured answer for this interview question.

Question: {question}
Job Role: {job_role}
Experience Level: {experience_level}
Tech Stack: {tech_stack}

Requirements:
- Provide a clear, detailed answer
- Include code examples where relevant
- Explain concepts thoroughly
- Structure the answer with proper formatting
- Keep it professional and concise (300-500 words)
- Return ONLY the answer text, no prefixes or labels
""".strip()

EXPLANATION_PROMPT = """
Explain this interview Q&A in a simple, easy-to-understand way. Break down complex concepts and provide examples.

Question: {question}

Answer: {answer}

Requirements:
- Simplify technical jargon
- Use analogies where helpful
- Provide practical examples
- Keep it concise (200-300 words)
- Make it beginner-friendly
- Return ONLY the explanation text, no prefixes or labels
""".strip()


# ─── Learning assistant ───────────────────────────────────────────────

CHAT_PREAMBLE = (
    "You are an AI assistant helping users understand documents. "
    "Answer questions based on the document content provided."
)

CHAT_QUESTION = (
    "User question: {message}\n\n"
    "Answer the question based on the document content. "
    "If the answer isn't in the document, say so politely."
)

SUMMARY_PROMPT = """
Summarize this document in a concise, well-structured format. Include key points, main topics, and important details.

Document Content:
{content}

Requirements:
- Create a comprehensive summary (300-500 words)
- Organize with clear sections if applicable
- Highlight key concepts and takeaways
- Keep it professional and informative
- Return ONLY the summary text, no prefixes or labels
""".strip()

CONCEPT_PROMPT = """
Explain the concept "{concept}" based on the following document content. Provide a detailed, easy-to-understand explanation.

Document Content:
{content}

Requirements:
- Explain the concept clearly and thoroughly
- Use examples from the document if available
- Break down complex ideas
- Keep it educational and accessible (400-600 words)
- Return ONLY the explanation text, no prefixes or labels
""".strip()

FLASHCARDS_PROMPT = """
Generate {count} high-quality flashcards from this document. Each flashcard should have a question on the front and a detailed answer on the back.

Document Content:
{content}

Requirements:
- Generate exactly {count} flashcards
- Front: Clear, concise question
- Back: Detailed, informative answer
- Cover key concepts from the document
- Format: Return ONLY a JSON array, no additional text

Example format:
[{{"front": "What is...?", "back": "It is..."}}, {{"front": "How does...?", "back": "It works by..."}}]
""".strip()

QUIZ_PROMPT = """
Generate {count} multiple-choice quiz questions from this document. Each question should have 4 options with one correct answer.

Document Content:
{content}

Requirements:
- Generate exactly {count} questions
- Each question must have exactly 4 options
- Mark the correct answer (0-3 index)
- Include brief explanations for each answer
- Cover important concepts from the document
- Format: Return ONLY a JSON array, no additional text

Example format:
[{{"question": "What is...?", "options": ["Option A", "Option B", "Option C", "Option D"], "correctAnswer": 0, "explanation": "Because..."}}]
""".strip()


# ─── Outreach ─────────────────────────────────────────────────────────

OUTREACH_PROMPT = """
You are a career coach writing outreach messages that feel human and specific.

Platform: {platform}
Tone: {tone}
Relationship: {relationship}
Company: {company_name}
Role: {role_title}
Recruiter Name: {recruiter_name}
Sender Name: {sender_name}

Job Description:
{job_description}

Resume:
{resume_text}

Requirements:
- Write {count} distinct messages for the selected platform.
- Highlight 1-2 relevant strengths from the resume that match the job description.
- Be specific, concise, and natural. Avoid buzzword-heavy or overly formal language.
- Do not sound AI-generated or generic. No phrases like "As an AI" or "I hope this message finds you well."
- {length_guidance}
- If platform is Email, include a short subject line followed by the email body.
- Use placeholders like [Recruiter Name], [Company], [Role] when missing.
- Return ONLY a JSON array of strings, no extra text.

Example:
["Message 1...", "Message 2...", "Message 3..."]
""".strip()

# (platform keyword, {length: guidance}); first keyword contained in the
# lower-cased platform wins, the final entry is the email default
LENGTH_GUIDANCE = [
    ("text", {
        "short": "Keep it under 220 characters.",
        "medium": "Keep it under 260 characters.",
        "long": "Keep it under 320 characters.",
    }),
    ("linkedin", {
        "short": "Keep it 350-450 characters.",
        "medium": "Keep it 500-650 characters.",
        "long": "Keep it 700-900 characters.",
    }),
    ("", {
        "short": "Keep it 120-160 words.",
        "medium": "Keep it 170-210 words.",
        "long": "Keep it 220-280 words.",
    }),
]


def length_guidance(platform: str, length: str) -> str:
    platform_key = platform.lower()
    length_key = length.lower()
    if length_key not in ("short", "long"):
        length_key = "medium"
    for keyword, by_length in LENGTH_GUIDANCE:
        if keyword in platform_key:
            return by_length[length_key]
    raise AssertionError("LENGTH_GUIDANCE must end with a catch-all entry")
