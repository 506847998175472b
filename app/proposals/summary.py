"""
app/proposals/summary.py
------------------------
Executive-summary copy for a proposal, written by Claude.

Optional: with no ANTHROPIC_API_KEY, or on any API failure, the caller
gets None and keeps whatever summary the proposal already has.
"""
import anthropic
from flask import current_app


def build_summary_prompt(client: str, industry: str, problem: str) -> str:
    return f"""Write a powerful, professional 'Executive Summary' for a high-performance SEO-first website build proposal.
Client: {client}
Industry: {industry}
Core Problem: {problem}

Frame the website as a 'Digital Asset' that serves the client's customers and works as a machine for local search.
Format it in 3 short paragraphs: The 'Why' (The Problem), The 'What' (High performance website), and The 'Outcome' (Ranking, Speed, Conversion).
Be persuasive and authoritative, yet empathetic to the client's industry.
Return only the three paragraphs, no headings or preamble."""


def generate_summary(client: str, industry: str, problem: str):
    """Return summary text, or None when unconfigured or the call fails."""
    api_key = current_app.config.get('ANTHROPIC_API_KEY')
    if not api_key:
        current_app.logger.warning("ANTHROPIC_API_KEY not set. Skipping summary generation.")
        return None

    try:
        client_api = anthropic.Anthropic(api_key=api_key)
        response = client_api.messages.create(
            model=current_app.config['SUMMARY_MODEL'],
            max_tokens=1000,
            messages=[{"role": "user", "content": build_summary_prompt(client, industry, problem)}],
        )
    except anthropic.APIError as e:
        current_app.logger.error(f"Summary generation failed for {client!r}: {e}")
        return None

    text = ''.join(
        block.text for block in response.content if getattr(block, 'type', None) == 'text'
    ).strip()
    return text or None
