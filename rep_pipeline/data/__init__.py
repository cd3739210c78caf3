from .companion_slot import CompanionSlot
from .data_loader import SessionLoader

__all__ = ['CompanionSlot', 'SessionLoader']
