"""
Curated pool of question -> Cypher examples for few-shot query generation.

Covers the common query shapes over a movie graph
(``(:Person)-[:ACTED_IN|DIRECTED]->(:Movie)``):
- Single-hop lookups
- Aggregation / counting
- Filtering on properties
- Multi-hop paths
- Ordering and limits
"""

from __future__ import annotations

CYPHER_EXAMPLES: list[dict[str, str]] = [
    # --- Single-hop lookups ---
    {
        "question": "Which actors played in the movie Casino?",
        "query": "MATCH (m:Movie {title: 'Casino'})<-[:ACTED_IN]-(a:Person) RETURN a.name",
    },
    {
        "question": "Who directed the movie Heat?",
        "query": "MATCH (m:Movie {title: 'Heat'})<-[:DIRECTED]-(d:Person) RETURN d.name",
    },
    # --- Aggregation ---
    {
        "question": "How many movies has Tom Hanks acted in?",
        "query": (
            "MATCH (a:Person {name: 'Tom Hanks'})-[:ACTED_IN]->(m:Movie) "
            "RETURN count(m)"
        ),
    },
    # --- Filtering ---
    {
        "question": "List all the movies released after 2010.",
        "query": "MATCH (m:Movie) WHERE m.released > 2010 RETURN m.title",
    },
    # --- Multi-hop ---
    {
        "question": "Which actors have worked with Keanu Reeves?",
        "query": (
            "MATCH (k:Person {name: 'Keanu Reeves'})-[:ACTED_IN]->(:Movie)"
            "<-[:ACTED_IN]-(co:Person) RETURN DISTINCT co.name"
        ),
    },
    # --- Ordering / limits ---
    {
        "question": "What are the five highest rated movies?",
        "query": "MATCH (m:Movie) RETURN m.title, m.rating ORDER BY m.rating DESC LIMIT 5",
    },
]
