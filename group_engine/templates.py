"""Static catalog of group archetypes."""
from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional, Tuple

from .models import Group, GroupTemplate

if TYPE_CHECKING:
    from .registry import GroupRegistry

TEMPLATE_CATALOG: Tuple[GroupTemplate, ...] = (
    GroupTemplate(
        id="reading-advanced",
        name="Advanced Readers",
        description="Students reading above grade level",
        group_type="academic",
        suggested_size=4,
        color="#3498db",
        target_skills=("fluency", "comprehension", "critical thinking"),
    ),
    GroupTemplate(
        id="reading-support",
        name="Reading Support",
        description="Students needing additional reading support",
        group_type="academic",
        suggested_size=3,
        color="#e74c3c",
        target_skills=("phonics", "decoding", "sight words"),
    ),
    GroupTemplate(
        id="math-problem-solving",
        name="Math Problem Solvers",
        description="Students working on advanced math concepts",
        group_type="academic",
        suggested_size=4,
        color="#9b59b6",
        target_skills=("problem solving", "reasoning", "application"),
    ),
    GroupTemplate(
        id="math-foundations",
        name="Math Foundations",
        description="Students building basic math skills",
        group_type="academic",
        suggested_size=3,
        color="#f39c12",
        target_skills=("number sense", "basic operations", "counting"),
    ),
    GroupTemplate(
        id="social-skills",
        name="Social Skills Practice",
        description="Students working on social interaction",
        group_type="therapy",
        suggested_size=3,
        color="#2ecc71",
        target_skills=("turn taking", "sharing", "communication"),
    ),
    GroupTemplate(
        id="behavior-support",
        name="Behavior Support",
        description="Students needing behavior intervention",
        group_type="behavior",
        suggested_size=2,
        color="#e67e22",
        target_skills=("self-regulation", "following directions", "impulse control"),
    ),
    GroupTemplate(
        id="peer-partners",
        name="Peer Partners",
        description="Mixed ability partnerships",
        group_type="social",
        suggested_size=2,
        color="#1abc9c",
        target_skills=("collaboration", "peer support", "friendship"),
    ),
    GroupTemplate(
        id="independent-work",
        name="Independent Workers",
        description="Students who work well independently",
        group_type="mixed",
        suggested_size=5,
        color="#34495e",
        target_skills=("self-direction", "task completion", "focus"),
    ),
)

_BY_ID: Dict[str, GroupTemplate] = {template.id: template for template in TEMPLATE_CATALOG}


def get_template(template_id: str) -> Optional[GroupTemplate]:
    return _BY_ID.get(template_id)


def instantiate(template: GroupTemplate, registry: "GroupRegistry") -> Group:
    return registry.create_from_template(template)


def template_to_dict(template: GroupTemplate) -> Dict[str, object]:
    return {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "groupType": template.group_type,
        "suggestedSize": template.suggested_size,
        "color": template.color,
        "targetSkills": list(template.target_skills),
    }
