"""
Prompt templates for the LLM-backed collaborators.
"""

EXTRACTION_PROMPT = """Extract entities and relationships from this personal note. Be thorough but accurate. Only extract what is clearly stated or strongly implied.
{known_context}
Note: "{text}"

Return:
- entities: name (proper name, capitalized), type (person|organization|place|project|pet|other), relationship to the note author (e.g. "coworker", "friend", "my dog") or null, context (relevant phrase from this note), sentiment (-1 to 1) or null
- relationships: subject, predicate (works_at|leads|knows|reports_to|lives_in|partner_of|friends_with|manages|invested_in|left|joined|owns|created), object, role (title if mentioned) or null, confidence (0-1)
- changes_detected: entity_name, change_type (job|location|relationship|status), new_value or null, evidence (exact phrase)

Rules:
- Only extract named entities (people, companies, places with proper names)
- Do not extract generic terms like "the meeting" or "my work"
- For people, include first names even without last names (e.g. "Sarah", "Marcus")
- Detect changes like "Sarah left Google" or "moved to Brooklyn"
- Empty lists are fine if nothing is detected"""

IMPORTANCE_PROMPT = """Classify the importance of this entity to the user based on available context.

Entity: {name}
Type: {kind}
Relationship: {relationship}
Mentioned: {mention_count} times
Context: {context}

Importance levels:
- critical: Immediate family, partners, best friends, self, critical work relationships
- high: Close friends, important colleagues, significant projects, pets
- medium: Regular contacts, ongoing projects, recurring topics
- low: Acquaintances, one-time mentions, background people
- trivial: Random names, places mentioned in passing, unlikely to matter again

Return the importance level, an importance_score between 0.0 and 1.0, and a brief reasoning."""

COMPRESSION_PROMPT = """Create a concise, insightful summary of what the user knows about {name}.

Entity type: {kind}
{relationship_context}
Context from user's notes (chronological order, oldest first):
{notes}

Write a 2-3 sentence summary that:
1. Captures who/what {name} is to the user (their relationship)
2. Notes any significant changes or evolution over time
3. Highlights what seems most important or memorable

Guidelines:
- Be specific, not generic
- Use "your" language (e.g. "Your coworker Sarah..." not "Sarah is a coworker...")
- If there are changes (job change, moved, etc.), mention the progression"""

INFERENCE_PROMPT = """Analyze these entities from a user's personal notes and infer any connections or patterns that aren't explicitly stated.

Entities:
{entities}
{relationship_context}{notes_context}
Look for:
1. Implicit connections (e.g. two people who might know each other based on context)
2. Shared attributes (e.g. both work in tech, both mentioned in work contexts)
3. Patterns (e.g. user mentions this person when stressed)
4. Predictions (e.g. these two might be introduced soon based on context)

Only include high-confidence (>0.6) inferences. Be conservative, no wild guesses."""
