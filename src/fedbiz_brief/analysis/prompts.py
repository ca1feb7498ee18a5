# ABOUTME: Prompt templates for AI-backed brief analysis.
# ABOUTME: System prompt plus the "what this means" and "next actions" instructions.

ANALYST_SYSTEM_PROMPT = (
    "You are a federal contracting analyst providing strategic insights for business "
    "development. Be concise, specific, and actionable. Focus on timing, competition, "
    "and opportunity assessment."
)

WHAT_IT_MEANS_PROMPT = (
    "Based on this federal contracting activity, provide 2-3 bullet points analyzing what "
    "this means for businesses pursuing {program_name} opportunities. Focus on market "
    "trends, timing implications, and competitive landscape. Be concise and actionable."
)

NEXT_ACTIONS_PROMPT = (
    "Based on this federal contracting activity, provide 3-4 specific action items for "
    "businesses pursuing {program_name} opportunities. Focus on immediate next steps, "
    "timing considerations, and strategic moves. Use bullet points starting with action verbs."
)
