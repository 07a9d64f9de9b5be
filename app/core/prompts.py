from typing import List
from app.schemas.analysis import CategoryRubric


class BiasPrompts:
    GUIDELINES = """
## Overview
You are an assistant for a media bias tracking system. You will be given the text of a news article and a list of bias
categories, each with a short scoring rubric. Your task is to score how strongly the article leans within every category.
You are not being asked whether the article is true or false, only how it frames its subject.

Scoring:
- Every score is a continuous number from -1 to 1.
- 0 means the article is balanced or neutral for that category.
- The sign and meaning of -1 and 1 for each category are given in its rubric.
- Score every category listed, even if the article barely touches it. Use 0 and say so in the explanation.
- Base the score only on the article text. Do not rely on what you know about the outlet or author.

Explanations:
- One or two sentences per category.
- Point at wording, framing, sourcing or omissions in the article that justify the score.

Return ONLY valid JSON, with no markdown and no code blocks.
    """

    @staticmethod
    def format_categories(categories: List[CategoryRubric]) -> str:
        lines = []
        for category in categories:
            if category.description:
                lines.append(f"- {category.name}: {category.description}")
            else:
                lines.append(f"- {category.name}")
        return "\n".join(lines)

    @staticmethod
    def get_prompt(content: str, categories: List[CategoryRubric]) -> str:
        return f"""
Analyze this article for bias.

Article content:
{content}

Score each of these bias categories from -1 to 1, using the category name exactly as written:
{BiasPrompts.format_categories(categories)}

Return ONLY valid JSON with no markdown, no code blocks.
Format:
{{
  "scores": [
    {{ "category": "<category name>", "score": 0.0, "explanation": "Brief explanation" }}
  ],
  "summary": "One sentence summary of overall bias"
}}
    """
