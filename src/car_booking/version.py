"""Version metadata for car_booking."""

__app_name__ = "CarBooking"
__company__ = "Bubat Rent"
__version__ = "0.4.0"
