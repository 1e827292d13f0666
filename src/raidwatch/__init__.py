"""
raidwatch: in-memory directories and raid lifecycle tracking for a
Pokémon Go raid bot.
"""

__version__ = "0.3.0"
