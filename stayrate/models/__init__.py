from .property import Property
from .room_type import RoomType, PriceModel, PRICE_FIELDS
from .room import Room, RoomStatus
from .reservation import Reservation, ReservationStatus, COMMITTED_STATUSES
from .inventory_hold import InventoryHold, HoldKind, BlockType
from .manual_rate import ManualRate
from .pricing_rule import DynamicPricingRule, OccupancyRule
from .group_reservation import GroupReservation, RoomBlock, GroupStatus, PaymentMode, DiscountType
from .folio import GuestFolio, FolioItem, FolioStatus
