# services/prompts.py
"""Prompt templates for the chat assistant"""
from typing import List

from core.domain import RetrievedContext

CONTEXT_SEPARATOR = "\n\n---\n\n"

SYSTEM_PROMPT = (
    "Tu es l'Assistant Sadaqa, un assistant intelligent pour les associations caritatives "
    "de Casablanca pendant le Ramadan.\n\n"
    "Ton rôle est d'aider les bénévoles et donateurs avec:\n"
    "- Les informations sur les familles nécessiteuses par quartier\n"
    "- La gestion des dons Zakat et Sadaqa\n"
    "- L'organisation des distributions de Quffat Ramadan\n"
    "- La coordination des Iftars collectifs\n"
    "- Les guides et règles de la Zakat\n"
    "- Le suivi des inventaires et des besoins\n\n"
    "Instructions importantes:\n"
    "- Réponds toujours en français, de manière claire, empathique et respectueuse\n"
    "- Si tu as des informations contextuelles issues des documents indexés, utilise-les en priorité\n"
    "- Cite les sources quand tu utilises des informations spécifiques\n"
    "- Si tu n'as pas d'information précise dans le contexte, dis-le clairement\n"
    "- Sois précis avec les chiffres, dates et noms de quartiers"
)

CONTEXT_INSTRUCTION = (
    "Réponds en te basant sur le contexte fourni ci-dessus. Si le contexte contient des "
    "informations pertinentes, utilise-les. Sinon, réponds de manière générale."
)

NO_CONTEXT_INSTRUCTION = (
    "Réponds de manière générale. Si tu n'as pas d'information spécifique, propose à "
    "l'utilisateur d'indexer des documents pertinents."
)


def render_context(blocks: List[RetrievedContext]) -> str:
    """One labeled block per match, in the order the store returned them."""
    return CONTEXT_SEPARATOR.join(
        f"[Source: {block.source_label}, Score: {block.similarity_score:.3f}]\n{block.text}"
        for block in blocks
    )


def build_prompt(question: str, blocks: List[RetrievedContext]) -> str:
    if blocks:
        return (
            f"{SYSTEM_PROMPT}\n\n"
            f"=== CONTEXTE DISPONIBLE (documents indexés) ===\n{render_context(blocks)}\n\n"
            f"=== QUESTION DE L'UTILISATEUR ===\n{question}\n\n"
            f"{CONTEXT_INSTRUCTION}"
        )
    return (
        f"{SYSTEM_PROMPT}\n\n"
        f"=== QUESTION DE L'UTILISATEUR ===\n{question}\n\n"
        f"{NO_CONTEXT_INSTRUCTION}"
    )
