from sponsor_tree.models.member import Member, MemberStatus

__all__ = ['Member', 'MemberStatus']
