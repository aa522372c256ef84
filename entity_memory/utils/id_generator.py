"""
ID generation utilities.

Provides consistent IDs for every record type:
- Entities: ent_xxx
- Facts: fact_xxx
- Relationships: rel_xxx
- Inferences: inf_xxx
- Notes: note_xxx
"""

from uuid import uuid4


def _short_hex() -> str:
    return uuid4().hex[:12]


def generate_entity_id() -> str:
    """
    Generate unique Entity ID.

    Returns:
        ID in format "ent_xxx" where xxx is 12 hex characters
    """
    return f"ent_{_short_hex()}"


def generate_fact_id() -> str:
    """Generate unique Fact ID ("fact_xxx")."""
    return f"fact_{_short_hex()}"


def generate_relationship_id() -> str:
    """Generate unique Relationship ID ("rel_xxx")."""
    return f"rel_{_short_hex()}"


def generate_inference_id() -> str:
    """Generate unique Inference ID ("inf_xxx")."""
    return f"inf_{_short_hex()}"


def generate_note_id() -> str:
    """
    Generate unique Note ID.

    Returns:
        ID in format "note_xxx" where xxx is 12 hex characters
    """
    return f"note_{_short_hex()}"
