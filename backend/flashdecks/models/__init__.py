from flashdecks.models.user import User
from flashdecks.models.deck import Deck, DeckKind
from flashdecks.models.deck_share import DeckShare
from flashdecks.models.deck_like import DeckLike
from flashdecks.models.card import Card

__all__ = ["User", "Deck", "DeckKind", "DeckShare", "DeckLike", "Card"]
