from .booking import DEFAULT_POLICY, OpenSlot, Reservation, WorkWeekPolicy, count_overlaps, has_time_overlap
from .slots import NotAWeekdayError, free_slots_for_day, free_slots_for_week
from .validation import ReasonCode, ReservationValidationError, ValidationResult, validate
from .yaml_store import ReservationStorageError, ReservationYamlRepository

__all__ = [
	"DEFAULT_POLICY",
	"OpenSlot",
	"Reservation",
	"WorkWeekPolicy",
	"count_overlaps",
	"has_time_overlap",
	"NotAWeekdayError",
	"free_slots_for_day",
	"free_slots_for_week",
	"ReasonCode",
	"ReservationValidationError",
	"ValidationResult",
	"validate",
	"ReservationStorageError",
	"ReservationYamlRepository",
]
