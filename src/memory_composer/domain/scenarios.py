"""Static catalog of narrative scenarios."""

from dataclasses import dataclass

HISTORICAL_PLACEHOLDER = "{deceased_person}"


@dataclass(frozen=True)
class Scenario:
    """A named narrative template for a generated scene."""

    id: str
    title: str
    description: str
    emotional_tone: str
    prompt: str

    def fill(self, historical_reference: str) -> str:
        """Return the template with the historical placeholder replaced."""
        return self.prompt.replace(HISTORICAL_PLACEHOLDER, historical_reference)


SCENARIOS: tuple[Scenario, ...] = (
    Scenario(
        id="wedding",
        title="Wedding Celebration",
        description="Show your loved one celebrating at a modern family wedding",
        emotional_tone="joyful",
        prompt=(
            "A joyful family wedding celebration where {deceased_person} is present, "
            "smiling and celebrating with the current family members at a beautiful "
            "outdoor ceremony"
        ),
    ),
    Scenario(
        id="graduation",
        title="Graduation Day",
        description="Capture the pride of graduation moments together",
        emotional_tone="proud",
        prompt=(
            "A proud graduation ceremony where {deceased_person} is present, beaming "
            "with pride as they celebrate this milestone with current family members"
        ),
    ),
    Scenario(
        id="holiday",
        title="Holiday Gathering",
        description="Recreate festive family holiday traditions",
        emotional_tone="warm",
        prompt=(
            "A warm holiday family gathering where {deceased_person} is naturally "
            "integrated, sharing in the festive traditions and joy with current family"
        ),
    ),
    Scenario(
        id="birthday",
        title="Birthday Party",
        description="Celebrate birthdays with multi-generational joy",
        emotional_tone="lively",
        prompt=(
            "A lively birthday celebration where {deceased_person} joins current "
            "family members in celebrating, sharing in the joy and laughter"
        ),
    ),
    Scenario(
        id="newborn",
        title="Meeting New Baby",
        description="Show the moment of meeting newest family members",
        emotional_tone="tender",
        prompt=(
            "A tender moment where {deceased_person} meets and holds the newest "
            "family member, surrounded by current family in a loving scene"
        ),
    ),
    Scenario(
        id="vacation",
        title="Family Vacation",
        description="Create memories of traveling together",
        emotional_tone="relaxed",
        prompt=(
            "A relaxed family vacation scene where {deceased_person} enjoys the "
            "destination and activities alongside current family members"
        ),
    ),
)

_BY_ID = {scenario.id: scenario for scenario in SCENARIOS}
_BY_TITLE = {scenario.title: scenario for scenario in SCENARIOS}


def get_scenario(scenario_id: str) -> Scenario | None:
    """Return a scenario by id, if present."""
    return _BY_ID.get(scenario_id)


def find_by_title(title: str) -> Scenario | None:
    """Return a scenario by display title, if present."""
    return _BY_TITLE.get(title)
