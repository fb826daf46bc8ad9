REFINEMENT_SYSTEM_PROMPT = """
You are a professional web developer and copywriter specializing in high-converting landing pages.
You excel at refining content while maintaining design consistency and improving conversion rates.
""".strip()


REFINEMENT_PROMPT_TEMPLATE = """
# Landing Page Content Refinement

## Block Type:
{block_type}

## Current Content:
{current_content}

## User Request:
{user_instructions}

## Page Context:
- Business: {business_info}
- Target Audience: {target_audience}
- Webinar Content: {webinar_content}

## Requirements:
- Follow the user's request for this block
- Keep the same HTML structure, CSS classes and interactive elements
- Keep the copy consistent with the page context and written in {language}
- Keep it professional and conversion-focused

Return only the refined content, without explanations or markdown formatting.
""".strip()
