# sponsor_tree/utils/tree_render.py
"""
Text rendering of a sponsor tree and its members.
"""
from typing import List, Optional

from sponsor_tree.hierarchy import HierarchyIndex
from sponsor_tree.models.member import Member


def render_tree(index: HierarchyIndex, max_depth: Optional[int] = None) -> str:
    """
    ASCII tree of every top-level member and its downline.

    Example:
        Company
        ├── Alice
        │   └── Bob
        └── Carol
    """
    roots = index.topLevelMembers()
    if not roots:
        return "<empty tree>"

    blocks = []
    for root in roots:
        lines = [root.name]
        # (member, prefix, is_last, depth); iterative to survive deep trees
        stack = [(child, "", i == len(root.childIds) - 1, 1)
                 for i, child in reversed(list(enumerate(index.directDownlines(root.memberId))))]

        while stack:
            member, prefix, is_last, depth = stack.pop()
            connector = "└──" if is_last else "├──"
            lines.append(f"{prefix}{connector} {member.name}")

            if max_depth is not None and depth >= max_depth:
                continue

            children = index.directDownlines(member.memberId)
            child_prefix = prefix + ("    " if is_last else "│   ")
            for i in reversed(range(len(children))):
                stack.append((children[i], child_prefix, i == len(children) - 1, depth + 1))

        blocks.append("\n".join(lines))

    return "\n\n".join(blocks)


def parent_name(index: HierarchyIndex, member: Member) -> str:
    sponsor = index.find(member.sponsorId) if member.sponsorId else None
    return sponsor.name if sponsor else "<none>"


def children_names(index: HierarchyIndex, member: Member) -> List[str]:
    return [child.name for child in index.directDownlines(member.memberId)]


def member_details(index: HierarchyIndex, memberId: str) -> str:
    """Multi-line profile of one member."""
    member = index.get(memberId)
    return "\n".join([
        f"Name: {member.name}",
        f"ID: {member.memberId}",
        f"Parent Name: {parent_name(index, member)}",
        f"Children: {', '.join(children_names(index, member)) or '-'}",
        f"Level/Depth: {index.level(memberId)}",
        f"Sales Volume: {index.salesVolume(memberId):.2f}",
        f"Commission Rate: {member.commissionRate * 100:.2f}%",
        f"Status: {member.status.value}",
        f"Phone: {member.phone}",
        f"Balance: {member.balance:.2f}",
    ])


def member_brief(index: HierarchyIndex, member: Member) -> str:
    """One-line summary used in listings."""
    return (
        f"{member.name} ({member.memberId}) parent={parent_name(index, member)} "
        f"children={len(member.childIds)} level={index.level(member.memberId)} "
        f"sales={index.salesVolume(member.memberId):.2f} bal={member.balance:.2f}"
    )
