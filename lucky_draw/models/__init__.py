"""ORM models."""

from lucky_draw.models.admin_profile import AdminProfile
from lucky_draw.models.draw import Draw
from lucky_draw.models.game import Game, GameStatus
from lucky_draw.models.prize import Prize
from lucky_draw.models.reservation import Reservation, ReservationStatus
from lucky_draw.models.side_application import SideApplication, SideApplicationStatus
from lucky_draw.models.template import Template, TemplateSlot

__all__ = [
    "AdminProfile",
    "Draw",
    "Game",
    "GameStatus",
    "Prize",
    "Reservation",
    "ReservationStatus",
    "SideApplication",
    "SideApplicationStatus",
    "Template",
    "TemplateSlot",
]
