from ninja_extra.throttling import AnonRateThrottle, UserRateThrottle


class AnonDefaultThrottle(AnonRateThrottle):
    rate = "60/min"


class UserDefaultThrottle(UserRateThrottle):
    rate = "100/min"


class AuthThrottle(AnonRateThrottle):
    rate = "100/min"


class WriteThrottle(UserRateThrottle):
    rate = "100/min"


class BookingThrottle(UserRateThrottle):
    rate = "30/min"


class ScanThrottle(UserRateThrottle):
    # A turnstile scanner can burst well above normal API traffic.
    rate = "600/min"
