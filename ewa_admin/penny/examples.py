"""Penny example prompts.

The "Try asking" panel shows a rotating window of example questions. Prompts
that mention an employee, company or partnership carry a placeholder that is
replaced with a real name picked at random from the current snapshot.
"""
import random
from typing import List, Optional

from ewa_admin.data.snapshot import DataSnapshot
from ewa_admin.penny.schemas import ExamplePrompt

RANDOM_EMPLOYEE = "__RANDOM_EMPLOYEE__"
RANDOM_COMPANY = "__RANDOM_COMPANY__"
RANDOM_PARTNERSHIP = "__RANDOM_PARTNERSHIP__"

# Used while the snapshot has no names of that kind
FALLBACK_EMPLOYEE = "an employee"
FALLBACK_COMPANY = "a company"
FALLBACK_PARTNERSHIP = "partnership"

SHOW_COUNT = 6

EXAMPLE_PROMPTS: List[ExamplePrompt] = [
    ExamplePrompt(text="Which companies are above 20% adoption", icon="📈"),
    ExamplePrompt(text="Which companies are below 10% adoption rate", icon="📉"),
    ExamplePrompt(text=f"Is {RANDOM_EMPLOYEE} enrolled?", icon="✅"),
    ExamplePrompt(text="How many companies are live?", icon="🏢"),
    ExamplePrompt(text=f"How many {RANDOM_PARTNERSHIP} companies are live?", icon="🤝"),
    ExamplePrompt(text=f"Does {RANDOM_EMPLOYEE} have an outstanding balance?", icon="💰"),
    ExamplePrompt(text=f"Where does {RANDOM_EMPLOYEE} work?", icon="📍"),
    ExamplePrompt(text=f"Tell me about {RANDOM_EMPLOYEE}", icon="👤"),
    ExamplePrompt(text=f"Tell me about {RANDOM_COMPANY}", icon="🏢"),
    ExamplePrompt(text="Show Outstanding Balances", icon="💰"),
    ExamplePrompt(text="Show Savings stats", icon="🏦"),
    ExamplePrompt(text="Show Company stats", display_text="Show US stats", icon="🇺🇸"),
    ExamplePrompt(text="What's Total Adoption", icon="📈"),
    ExamplePrompt(text="Top Companies by Adoption", icon="📈"),
    ExamplePrompt(text="Top Companies by Transfers", icon="💸"),
    ExamplePrompt(text="Top Companies by Total Outstanding Balance", icon="💰"),
    ExamplePrompt(text="Top Companies by Paused Employees", icon="⏸️"),
    ExamplePrompt(text="Top Companies by Enrolled Employees", icon="👥"),
    ExamplePrompt(text=f"Does {RANDOM_EMPLOYEE} have a Savings account?", icon="🏦"),
    ExamplePrompt(text=f"Is {RANDOM_EMPLOYEE} active?", icon="✅"),
    ExamplePrompt(text="List paused employees", icon="⏸️"),
    ExamplePrompt(text=f"Active users at {RANDOM_COMPANY}", icon="👥"),
    ExamplePrompt(text=f"Savings at {RANDOM_COMPANY}", icon="🏦"),
    ExamplePrompt(text=f"Outstanding balance at {RANDOM_COMPANY}", icon="💰"),
    ExamplePrompt(text=f"How many employees at {RANDOM_COMPANY}?", icon="📋"),
    ExamplePrompt(text="Who has outstanding balances?", icon="💰"),
    ExamplePrompt(text=f"Admin email for {RANDOM_COMPANY}", icon="📧"),
]


def substitute_names(
    prompt: ExamplePrompt,
    employee: Optional[str] = None,
    company: Optional[str] = None,
    partnership: Optional[str] = None,
) -> ExamplePrompt:
    """Replace the placeholders in a prompt's text and display text."""
    def _fill(text: Optional[str]) -> Optional[str]:
        if text is None:
            return None
        return (
            text.replace(RANDOM_EMPLOYEE, employee or FALLBACK_EMPLOYEE)
            .replace(RANDOM_COMPANY, company or FALLBACK_COMPANY)
            .replace(RANDOM_PARTNERSHIP, partnership or FALLBACK_PARTNERSHIP)
        )

    return prompt.model_copy(update={"text": _fill(prompt.text), "display_text": _fill(prompt.display_text)})


def rotating_examples(
    start: int,
    snapshot: Optional[DataSnapshot] = None,
    rng: Optional[random.Random] = None,
) -> List[ExamplePrompt]:
    """
    The window of SHOW_COUNT prompts beginning at ``start`` (wrapping around).

    One employee, one company and one partnership are picked per call and
    shared by every prompt in the window.
    """
    rng = rng or random.Random()
    employee = company = partnership = None
    if snapshot is not None:
        names = [e.full_name for e in snapshot.employees if e.full_name]
        employee = rng.choice(names) if names else None
        companies = [c.name for c in snapshot.companies if c.name]
        company = rng.choice(companies) if companies else None
        partnerships = snapshot.partnerships()
        partnership = rng.choice(partnerships) if partnerships else None

    total = len(EXAMPLE_PROMPTS)
    first = start % total
    return [
        substitute_names(EXAMPLE_PROMPTS[(first + i) % total], employee, company, partnership)
        for i in range(SHOW_COUNT)
    ]
