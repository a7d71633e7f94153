from __future__ import annotations

from typing import Sequence

from ..models import Item

CATEGORIZE_SYSTEM = "You are a helpful assistant that categorizes GitHub repositories."
CATEGORIZE_RETRY_SYSTEM = CATEGORIZE_SYSTEM + " Always respond with valid JSON."
FACT_SYSTEM = "You are a helpful assistant that generates interesting facts about developers."
FACT_PROMPT = (
    "Generate a short, interesting fact about software developers or the tech industry. "
    "Keep it concise and fun."
)

_CATEGORIZE_TEMPLATE = """\
Categorize the following GitHub repositories into logical groups based on their purpose, technology, and domain.
{format_instructions}
Here are the repositories:

{repositories}

Create between 5-15 meaningful categories. For each category, list the repositories (by their full names) that belong to it.
A repository can appear in multiple categories if appropriate.

Respond with ONLY a JSON object where keys are category names and values are arrays of repository full names.
Example format:
{{
  "Web Frameworks": ["owner/repo1", "owner/repo2"],
  "Data Science Tools": ["owner/repo3", "owner/repo4", "owner/repo5"]
}}
"""


def describe_item(item: Item) -> str:
    return (
        f"Repository: {item.full_name}\n"
        f"Description: {item.description or 'No description'}\n"
        f"Language: {item.primary_language or 'Unknown'}\n"
        f"Topics: {', '.join(item.topics) or 'None'}\n"
    )


def build_categorize_prompt(batch: Sequence[Item], *, is_retry: bool = False) -> str:
    format_instructions = "Be extra careful to format your response as valid JSON.\n" if is_retry else ""
    return _CATEGORIZE_TEMPLATE.format(
        format_instructions=format_instructions,
        repositories="\n".join(describe_item(item) for item in batch),
    )
