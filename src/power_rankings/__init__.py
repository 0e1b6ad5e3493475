"""Power Rankings.

Rating engine, season standings, and match reporting for a competitive
gaming community, with Elo or a TrueSkill-style skill rating.
"""

__version__ = "0.3.0"
__all__ = ["__version__"]
