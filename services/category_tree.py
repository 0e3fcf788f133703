"""
Construction de l'arbre des catégories à partir des lignes plates (id, parent_id).

Les données viennent de l'admin : le parent_id n'est jamais supposé acyclique.
Chaque parcours garde un ensemble d'ids déjà visités.
"""
import logging
from collections import defaultdict
from typing import Iterable, Optional

__all__ = ["CategoryNode", "build_category_tree", "count_nodes", "find_category", "collect_descendant_ids",
           "collect_descendant_ids_by_slug", "resolve_ancestor_path", "format_category_path", "would_create_cycle"]

logger = logging.getLogger(__name__)

# ✅ Noeud de l'arbre (enfants + référence vers le parent)
class CategoryNode:
    def __init__(self, id: int, name: str, slug: str, parent_id: Optional[int] = None, description: Optional[str] = None):
        self.id = id
        self.name = name
        self.slug = slug
        self.parent_id = parent_id
        self.description = description
        self.parent: Optional["CategoryNode"] = None
        self.children: list["CategoryNode"] = []

    @classmethod
    def from_row(cls, row) -> "CategoryNode":
        return cls(row.id, row.name, row.slug, row.parent_id, getattr(row, "description", None))

    def iter_subtree(self):
        """Parcours en profondeur du sous-arbre (le noeud compris)."""
        stack, seen = [self], set()
        while stack:
            node = stack.pop()
            if node.id in seen:
                continue
            seen.add(node.id)
            yield node
            stack.extend(reversed(node.children))

    def __repr__(self):
        return f"<CategoryNode(id={self.id}, slug={self.slug}, children={len(self.children)})>"

def _creates_cycle(nodes: dict, node_id: int, parent_id: int) -> bool:
    # Remonte depuis le parent candidat : si on retombe sur node_id, l'attacher fermerait une boucle
    current, seen = parent_id, set()
    while current is not None and current not in seen:
        if current == node_id:
            return True
        seen.add(current)
        parent = nodes.get(current)
        current = parent.parent.id if parent is not None and parent.parent is not None else None
    return False

def build_category_tree(rows: Iterable) -> list[CategoryNode]:
    """
    Transforme les catégories plates en forêt.

    Une catégorie dont le parent est absent, est elle-même, ou dont le rattachement
    fermerait un cycle devient une racine : chaque catégorie apparaît exactement une fois.
    """
    nodes: dict[int, CategoryNode] = {}
    for row in rows:
        nodes[row.id] = CategoryNode.from_row(row)

    roots = []
    for node in nodes.values():
        parent = nodes.get(node.parent_id) if node.parent_id is not None else None
        if parent is None or parent.id == node.id:
            roots.append(node)
            continue
        if _creates_cycle(nodes, node.id, parent.id):
            logger.warning(f"Cycle détecté dans les catégories : {node.id} -> {parent.id}, rattachée à la racine")
            roots.append(node)
            continue
        node.parent = parent
        parent.children.append(node)

    for node in nodes.values():
        node.children.sort(key=lambda child: child.name.lower())
    roots.sort(key=lambda root: root.name.lower())
    return roots

def count_nodes(forest: list[CategoryNode]) -> int:
    return sum(1 for root in forest for _ in root.iter_subtree())

def find_category(rows: Iterable, slug: str = None, id: int = None):
    """Retrouve une ligne par slug (insensible à la casse) ou par id."""
    if slug is not None:
        slug = slug.lower()
    for row in rows:
        if (slug is not None and row.slug.lower() == slug) or (id is not None and row.id == id):
            return row
    return None

def collect_descendant_ids(target_id: int, rows: Iterable) -> set[int]:
    """
    Ids de la catégorie cible et de tous ses descendants (point fixe, pas de profondeur maximale).
    Ensemble vide si la cible n'existe pas.
    """
    rows = list(rows)
    if not any(row.id == target_id for row in rows):
        return set()

    children_by_parent = defaultdict(list)
    for row in rows:
        if row.parent_id is not None:
            children_by_parent[row.parent_id].append(row.id)

    result = {target_id}
    frontier = [target_id]
    while frontier:
        current = frontier.pop()
        for child_id in children_by_parent.get(current, []):
            if child_id not in result:
                result.add(child_id)
                frontier.append(child_id)
    return result

def collect_descendant_ids_by_slug(slug: str, rows: Iterable) -> set[int]:
    rows = list(rows)
    target = find_category(rows, slug=slug)
    if target is None:
        return set()
    return collect_descendant_ids(target.id, rows)

def resolve_ancestor_path(category, rows: Iterable) -> list:
    """
    Chemin racine -> parent direct (la catégorie elle-même est exclue).
    La remontée s'arrête sur un parent nul, introuvable ou déjà visité.
    """
    by_id = {row.id: row for row in rows}
    path = []
    visited = {category.id}
    parent_id = category.parent_id
    while parent_id is not None and parent_id not in visited:
        parent = by_id.get(parent_id)
        if parent is None:
            break
        visited.add(parent.id)
        path.insert(0, parent)
        parent_id = parent.parent_id
    if parent_id is not None and parent_id in visited:
        logger.warning(f"Cycle détecté en remontant depuis la catégorie {category.id}")
    return path

def format_category_path(category, rows: Iterable, separator: str = " > ") -> str:
    # ex: "Men > Formal > Shirts"
    names = [ancestor.name for ancestor in resolve_ancestor_path(category, rows)]
    names.append(category.name)
    return separator.join(names)

def would_create_cycle(category_id: int, new_parent_id: Optional[int], rows: Iterable) -> bool:
    """Vrai si déplacer category_id sous new_parent_id le placerait sous lui-même."""
    if new_parent_id is None:
        return False
    return new_parent_id in collect_descendant_ids(category_id, rows)
