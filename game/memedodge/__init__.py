"""Memecoin Dodge - missile-rain dodging game core with adaptive difficulty"""

from .config import GameConfig
from .roster import EntityRoster, sample_roster
from .simulation import DodgeSession

__all__ = ['GameConfig', 'EntityRoster', 'sample_roster', 'DodgeSession']
