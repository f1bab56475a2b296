"""
Brahmavihara curriculum.

The path is four tracks (metta, karuna, mudita, upekkha), each walked through
six objects of practice in a fixed order, from oneself out to all beings.
A node is one (track, object) pair, written "metta-self".

Static reference content only: practices, opening aspirations and
dedications of merit. Nothing here is user-owned.
"""

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional


OBJECTS_ORDER: List[str] = ["self", "benefactor", "friend", "neutral", "difficult", "all"]
BRAHMAVIHARAS_ORDER: List[str] = ["metta", "karuna", "mudita", "upekkha"]
TRADITIONS = ("theravada", "mahayana", "vajrayana", "nonsectarian")

BRAHMAVIHARA_NAMES: Dict[str, str] = {
    "metta": "Metta (Loving-kindness)",
    "karuna": "Karuna (Compassion)",
    "mudita": "Mudita (Sympathetic Joy)",
    "upekkha": "Upekkha (Equanimity)",
}

OBJECT_NAMES: Dict[str, str] = {
    "self": "Self",
    "benefactor": "Benefactor",
    "friend": "Dear Friend",
    "neutral": "Neutral Person",
    "difficult": "Difficult Person",
    "all": "All Beings",
}

# Days of unbroken practice before a readiness gate can be passed
MIN_STREAK_TO_ADVANCE = 7


@dataclass(frozen=True)
class Practice:
    id: str
    title: str
    brahmavihara: str
    object: str
    type: str  # 'formal' | 'micro'
    tradition: str
    instructions: str
    reflection_prompts: List[str] = field(default_factory=list)
    source: Optional[str] = None
    duration: Optional[int] = None  # minutes, formal practices only

    @property
    def node(self) -> str:
        return node_id(self.brahmavihara, self.object)


def node_id(brahmavihara: str, practice_object: str) -> str:
    return f"{brahmavihara}-{practice_object}"


def split_node(node: str):
    brahmavihara, _, practice_object = node.partition("-")
    if brahmavihara not in BRAHMAVIHARAS_ORDER or practice_object not in OBJECTS_ORDER:
        raise ValueError(f"Unknown node: {node!r}")
    return brahmavihara, practice_object


def next_object(practice_object: str) -> Optional[str]:
    """Next object on the same track, None at 'all'."""
    index = OBJECTS_ORDER.index(practice_object)
    if index < len(OBJECTS_ORDER) - 1:
        return OBJECTS_ORDER[index + 1]
    return None


def get_next_node(current: str) -> Optional[str]:
    """Next node along the whole path: next object, else next track from 'self', else None."""
    brahmavihara, practice_object = split_node(current)

    following = next_object(practice_object)
    if following is not None:
        return node_id(brahmavihara, following)

    track_index = BRAHMAVIHARAS_ORDER.index(brahmavihara)
    if track_index < len(BRAHMAVIHARAS_ORDER) - 1:
        return node_id(BRAHMAVIHARAS_ORDER[track_index + 1], OBJECTS_ORDER[0])

    return None


def format_node(node: str) -> str:
    """'metta-friend' -> 'Metta (Loving-kindness) for Dear Friend'"""
    brahmavihara, practice_object = split_node(node)
    return f"{BRAHMAVIHARA_NAMES[brahmavihara]} for {OBJECT_NAMES[practice_object]}"


PRACTICES: List[Practice] = [
    Practice(
        id="metta-self-theravada-1",
        title="Classical Metta for Self",
        brahmavihara="metta",
        object="self",
        type="formal",
        tradition="theravada",
        source="Based on Visuddhimagga",
        duration=10,
        instructions=(
            "Sit comfortably. Allow your body to settle.\n\n"
            "Bring attention to the center of your chest, the heart space.\n\n"
            "Call to mind your own being. You might picture yourself sitting here, "
            "or simply rest in the felt sense of \"I am.\"\n\n"
            "Offer yourself these phrases, slowly, feeling their meaning:\n\n"
            "May I be free from danger.\n"
            "May I be free from mental suffering.\n"
            "May I be free from physical suffering.\n"
            "May I live with ease.\n\n"
            "When the mind wanders, return. When resistance arises, note it and continue."
        ),
        reflection_prompts=[
            "What arose as you offered yourself loving-kindness?",
            "Where did you feel this practice in your body, if anywhere?",
            "What resistance, if any, did you notice?",
        ],
    ),
    Practice(
        id="metta-self-micro-1",
        title="Self-Kindness in Difficulty",
        brahmavihara="metta",
        object="self",
        type="micro",
        tradition="nonsectarian",
        instructions=(
            "The next time you notice yourself struggling today, even slightly, pause.\n\n"
            "Place a hand on your heart if it feels natural.\n\n"
            "Silently say: \"This is hard. May I be kind to myself in this moment.\"\n\n"
            "Then continue with your day."
        ),
        reflection_prompts=[
            "Were you able to catch a moment of difficulty today?",
            "What happened when you offered yourself kindness?",
            "Did anything shift, even slightly?",
        ],
    ),
    Practice(
        id="metta-benefactor-theravada-1",
        title="Metta for Benefactor",
        brahmavihara="metta",
        object="benefactor",
        type="formal",
        tradition="theravada",
        duration=10,
        instructions=(
            "Settle into your seat. Take a few breaths to arrive.\n\n"
            "Call to mind someone who has been genuinely kind to you, someone for whom "
            "gratitude arises easily.\n\n"
            "Offer them these phrases:\n\n"
            "May you be free from danger.\n"
            "May you be free from mental suffering.\n"
            "May you be free from physical suffering.\n"
            "May you live with ease.\n\n"
            "Let the warmth you feel for this person carry the phrases."
        ),
        reflection_prompts=[
            "Who did you choose as your benefactor?",
            "What did it feel like to wish them well?",
            "How did this compare to metta for yourself?",
        ],
    ),
    Practice(
        id="metta-friend-theravada-1",
        title="Metta for Dear Friend",
        brahmavihara="metta",
        object="friend",
        type="formal",
        tradition="theravada",
        duration=10,
        instructions=(
            "Settle into your seat. Take a few breaths to arrive.\n\n"
            "Call to mind a dear friend, someone whose happiness you genuinely wish for, "
            "without romantic attachment or complicated history.\n\n"
            "Offer them these phrases:\n\n"
            "May you be free from danger.\n"
            "May you be free from mental suffering.\n"
            "May you be free from physical suffering.\n"
            "May you live with ease.\n\n"
            "If attachment arises, wanting something from them, return to plain well-wishing."
        ),
        reflection_prompts=[
            "Who did you choose as your dear friend?",
            "Did any attachment or wanting arise?",
            "What is it like to wish someone well without wanting anything in return?",
        ],
    ),
]

ASPIRATIONS: List[Dict[str, str]] = [
    {
        "id": "aspiration-traditional",
        "text": (
            "For the benefit of all sentient beings, I engage in this practice.\n"
            "May this practice awaken my heart and serve the liberation of all."
        ),
        "source": "Traditional",
    },
    {
        "id": "aspiration-shantideva",
        "text": (
            "Just as all the previous sugatas\n"
            "Gave birth to the awakened mind,\n"
            "And just as they followed step by step\n"
            "The training of a bodhisattva,\n"
            "In the same way, for the benefit of beings,\n"
            "I too will give birth to the awakened mind,\n"
            "And in the same way I too will train\n"
            "Step by step in the bodhisattva path."
        ),
        "source": "Shantideva, Bodhicaryavatara",
    },
    {
        "id": "aspiration-simple",
        "text": "May this practice benefit all beings.",
        "source": "Simple aspiration",
    },
]

DEDICATIONS: List[Dict[str, str]] = [
    {
        "id": "dedication-traditional",
        "text": (
            "By this merit, may all beings be free from suffering.\n"
            "May all beings know peace.\n"
            "May all beings awaken."
        ),
        "source": "Traditional",
    },
    {
        "id": "dedication-shantideva",
        "text": (
            "May all beings everywhere,\n"
            "Plagued by sufferings of body and mind,\n"
            "Obtain an ocean of happiness and joy\n"
            "By virtue of my merits."
        ),
        "source": "Shantideva",
    },
]

_PRACTICES_BY_ID: Dict[str, Practice] = {p.id: p for p in PRACTICES}


def get_practice(practice_id: str) -> Optional[Practice]:
    return _PRACTICES_BY_ID.get(practice_id)


def get_practices_for_node(node: str) -> List[Practice]:
    brahmavihara, practice_object = split_node(node)
    return [p for p in PRACTICES if p.brahmavihara == brahmavihara and p.object == practice_object]


def get_random_practice(node: str, rng: Optional[random.Random] = None) -> Optional[Practice]:
    candidates = get_practices_for_node(node)
    if not candidates:
        return None
    return (rng or random).choice(candidates)


def random_aspiration(rng: Optional[random.Random] = None) -> Dict[str, str]:
    return (rng or random).choice(ASPIRATIONS)


def random_dedication(rng: Optional[random.Random] = None) -> Dict[str, str]:
    return (rng or random).choice(DEDICATIONS)


def random_reflection_prompt(practice: Practice, rng: Optional[random.Random] = None) -> Optional[str]:
    if not practice.reflection_prompts:
        return None
    return (rng or random).choice(practice.reflection_prompts)
