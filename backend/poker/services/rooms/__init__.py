"""Room domain services: codes, sessions, voting and per-viewer projection.

Routes build these per request around explicit store handles, keeping
transport concerns out of the room state machine.
"""

from .codes import CodeGenerator, normalize_code
from .projection import project
from .sessions import SessionService
from .voting import VotingEngine, compute_stats

__all__ = ['CodeGenerator', 'SessionService', 'VotingEngine', 'compute_stats', 'normalize_code', 'project']
