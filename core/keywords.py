"""Multilingual (French / English / Arabic) keyword tables.

Plain data: matching is case-insensitive substring containment
(see utils.arabic_text.contains_any). Add synonyms here, not in code.
"""
from typing import Dict, List, Tuple

from core.enums import DocumentType

# ============= Document classification =============
# Checked in order, first match wins.
DOCUMENT_TYPE_KEYWORDS: List[Tuple[DocumentType, List[str]]] = [
    (DocumentType.FAMILY_LIST, ["famille", "family", "أسرة", "عائلة"]),
    (DocumentType.INVENTORY, ["inventaire", "inventory", "stock", "مخزون"]),
    (DocumentType.ZAKAT_GUIDE, ["zakat", "زكاة", "guide"]),
]

# ============= Spreadsheet headers =============
HEADER_KEYWORDS: Dict[str, List[str]] = {
    "name": ["nom", "name", "famille", "family", "أسرة"],
    "district": ["quartier", "district", "zone", "حي", "region"],
    "members": ["membres", "members", "personnes", "أفراد", "nombre"],
    "needs": ["besoins", "needs", "besoin", "احتياجات"],
    "priority": ["priorité", "priority", "urgence", "أولوية"],
}

# Priority cell of a spreadsheet row
TABLE_PRIORITY_HIGH: List[str] = ["urgent", "haute", "high", "عاجل"]
TABLE_PRIORITY_LOW: List[str] = ["faible", "basse", "low", "منخفض"]

# Delimiters of a needs cell: comma, semicolon, pipe
NEEDS_DELIMITERS = r"[,;|]"

# ============= Freeform text context =============
# keyword -> need label, label order follows first appearance in this table
NEED_LABELS: Dict[str, str] = {
    "quffat": "Quffat Ramadan",
    "ramadan": "Quffat Ramadan",
    "iftar": "Iftar collectif",
    "médicaments": "Médicaments",
    "medicaments": "Médicaments",
    "medicine": "Médicaments",
    "vêtements": "Vêtements",
    "vetements": "Vêtements",
    "clothing": "Vêtements",
    "éducation": "Éducation",
    "education": "Éducation",
    "logement": "Logement",
    "housing": "Logement",
    "nourriture": "Nourriture",
    "food": "Nourriture",
    "argent": "Aide financière",
    "financier": "Aide financière",
    "financial": "Aide financière",
    "scolaire": "Fournitures scolaires",
    "school supplies": "Fournitures scolaires",
    "santé": "Soins de santé",
    "sante": "Soins de santé",
    "healthcare": "Soins de santé",
}

# Negated urgency is tested first: "non urgent" contains "urgent".
CONTEXT_PRIORITY_NEGATED: List[str] = ["non urgent", "non-urgent", "peu urgent", "pas urgent", "not urgent"]
CONTEXT_PRIORITY_HIGH: List[str] = [
    "urgent", "priorité haute", "priorite haute", "haute priorité", "high priority",
    "critique", "immédiat", "عاجل",
]
CONTEXT_PRIORITY_LOW: List[str] = ["faible", "basse", "low priority"]
