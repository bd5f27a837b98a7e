from schemas import AnalysisRequest, SubmissionDraft

PROMPT_VERSION = "2025-01.1"
TEMPERATURE = 0.2

SYSTEM_PROMPT = """You are a professional hiring manager.
Analyze the candidate's resume against the job description.

OUTPUT FORMAT (STRICT JSON, exactly these keys):
{
  "matchScore": <integer 0-100>,
  "executiveSummary": "2-3 sentence overview of the fit",
  "strengths": ["Specific strengths relevant to the role"],
  "gaps": ["Specific missing requirements or weak areas"],
  "keywordsFound": ["Job keywords present in the resume"],
  "keywordsMissing": ["Job keywords absent from the resume"],
  "suggestions": ["Concrete edits to improve the resume for this role"],
  "interviewPrep": ["Likely interview questions to prepare for"]
}

Guidelines:
- Be objective and evidence-based; quote the resume where possible.
- Use empty arrays when a section has nothing to report.
- Output ONLY the JSON object: no markdown, no code fences, no commentary."""


USER_TEMPLATE = """RESUME:
{resume}

JOB DESCRIPTION:
{jd}

Analyze the resume against the job description and respond strictly in the required JSON schema."""


def build_request(draft: SubmissionDraft) -> AnalysisRequest:
    """Embed both texts verbatim under labeled sections."""
    return AnalysisRequest(
        system_instruction=SYSTEM_PROMPT,
        user_prompt=USER_TEMPLATE.format(resume=draft.resume_text, jd=draft.job_description_text),
        prompt_version=PROMPT_VERSION,
        temperature=TEMPERATURE,
    )


def build_payload(request: AnalysisRequest) -> dict:
    """Gemini generateContent body for one request."""
    return {
        "contents": [{"role": "user", "parts": [{"text": request.user_prompt}]}],
        "systemInstruction": {"parts": [{"text": request.system_instruction}]},
        "generationConfig": {
            "responseMimeType": "application/json",
            "temperature": request.temperature,
        },
    }
