"""Penny - the EWA admin portal's query assistant.

Penny answers free-text questions about employees, companies and
partnerships. It is deterministic and rule driven:
- Intent Classifier: pattern tables plus the Entity Resolver's name index
- Answer Builders: one routine per intent over the current data snapshot
- Response Synthesizer: marks entity names and finalizes suggestions
An optional OpenAI fallback only handles questions the rules can't classify.
"""
