"""
OpenRTB Business Rules

Checks that go beyond object shape and field types: uniqueness, cross-field
exclusivity, enumerated values, value ranges and recommended fields. Each
rule inspects the raw request dict and yields ValidationError or
ValidationWarning records; values of the wrong type are skipped because
the schema models already report them.
"""

from typing import Any, Callable, Dict, Iterable, List, Tuple, Union

from ortb.validation.models import ValidationError, ValidationWarning


Issue = Union[ValidationError, ValidationWarning]
Rule = Callable[[Dict[str, Any]], Iterable[Issue]]

VALID_AUCTION_TYPES = (1, 2, 3)
# Values above this are exchange-specific auction types
EXCHANGE_AUCTION_TYPE_FLOOR = 500
VALID_DEVICE_TYPES = range(1, 8)
VALID_CONNECTION_TYPES = range(0, 8)
VALID_BANNER_POSITIONS = range(0, 8)

LOW_TMAX_MS = 50
HIGH_TMAX_MS = 1000

STANDARD_BANNER_SIZES = {
    (300, 250), (728, 90), (320, 50), (160, 600), (300, 600), (970, 250),
    (320, 100), (468, 60), (234, 60), (120, 600), (120, 240), (125, 125),
}

ISO_4217_CODES = {
    'USD', 'EUR', 'GBP', 'JPY', 'AUD', 'CAD', 'CHF', 'CNY', 'SEK', 'NZD',
    'MXN', 'SGD', 'HKD', 'NOK', 'TRY', 'ZAR', 'BRL', 'INR', 'KRW', 'PLN',
    'RUB', 'THB', 'CZK', 'DKK', 'HUF', 'ILS', 'CLP', 'PHP', 'AED', 'COP',
    'SAR', 'MYR', 'RON', 'BGN', 'ISK', 'EGP', 'QAR', 'MAD', 'JOD', 'TWD',
}

AD_FORMATS = ("banner", "video", "audio", "native")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _impressions(request: Dict[str, Any]) -> List[Tuple[int, Dict[str, Any]]]:
    imps = request.get("imp")
    if not isinstance(imps, list):
        return []
    return [(i, imp) for i, imp in enumerate(imps) if isinstance(imp, dict)]


def _object(container: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = container.get(key)
    return value if isinstance(value, dict) else {}


# --- Business logic ---

def check_unique_impression_ids(request: Dict[str, Any]) -> Iterable[Issue]:
    seen = set()
    for index, imp in _impressions(request):
        imp_id = imp.get("id")
        if not isinstance(imp_id, str) or not imp_id:
            continue
        if imp_id in seen:
            yield ValidationError(
                field=f"imp.{index}.id",
                message=(
                    f"Duplicate impression ID '{imp_id}' found. "
                    "Impression IDs must be unique within a request."
                ),
                code="ORTB_DUPLICATE_IMPRESSION_ID",
                type="logical",
                actual_value=imp_id,
                expected_value="unique impression ID",
                suggestion="Ensure each impression has a unique ID within the request",
            )
        seen.add(imp_id)


def check_ad_format_present(request: Dict[str, Any]) -> Iterable[Issue]:
    for index, imp in _impressions(request):
        if not any(imp.get(fmt) is not None for fmt in AD_FORMATS):
            yield ValidationError(
                field=f"imp.{index}",
                message="Impression must specify at least one ad format (banner, video, audio, or native)",
                code="ORTB_MISSING_AD_FORMAT",
                type="logical",
                expected_value="impression with at least one ad format",
                suggestion="Add banner, video, audio, or native object to the impression",
            )


def check_site_app_exclusive(request: Dict[str, Any]) -> Iterable[Issue]:
    if request.get("site") is not None and request.get("app") is not None:
        yield ValidationError(
            field="site",
            message="Request cannot contain both site and app objects - they are mutually exclusive",
            code="ORTB_SITE_APP_MUTUAL_EXCLUSION",
            type="logical",
            actual_value={"site": True, "app": True},
            expected_value="either site or app, not both",
            suggestion="Remove either the site or app object, depending on your inventory type",
        )


def check_video_durations(request: Dict[str, Any]) -> Iterable[Issue]:
    for index, imp in _impressions(request):
        video = _object(imp, "video")
        min_duration = video.get("minduration")
        max_duration = video.get("maxduration")
        if _is_int(min_duration) and min_duration <= 0:
            yield ValidationError(
                field=f"imp.{index}.video.minduration",
                message="Video minimum duration must be greater than 0",
                code="ORTB_INVALID_MIN_DURATION",
                type="value",
                actual_value=min_duration,
                expected_value="positive integer",
            )
        if _is_int(max_duration) and max_duration <= 0:
            yield ValidationError(
                field=f"imp.{index}.video.maxduration",
                message="Video maximum duration must be greater than 0",
                code="ORTB_INVALID_MAX_DURATION",
                type="value",
                actual_value=max_duration,
                expected_value="positive integer",
            )
        if _is_int(min_duration) and _is_int(max_duration) and min_duration > max_duration:
            yield ValidationError(
                field=f"imp.{index}.video",
                message="Video minimum duration cannot be greater than maximum duration",
                code="ORTB_INVALID_VIDEO_DURATION",
                type="logical",
                actual_value={"min": min_duration, "max": max_duration},
                expected_value="minduration <= maxduration",
                suggestion="Ensure minimum duration is less than or equal to maximum duration",
            )


# --- Enumerations and ranges ---

def check_auction_type(request: Dict[str, Any]) -> Iterable[Issue]:
    at = request.get("at")
    if not _is_int(at):
        return
    if at not in VALID_AUCTION_TYPES and at <= EXCHANGE_AUCTION_TYPE_FLOOR:
        yield ValidationError(
            field="at",
            message=(
                f"Invalid auction type '{at}'. Must be 1 (First Price), "
                "2 (Second Price), or 3 (Fixed Price)"
            ),
            code="ORTB_INVALID_AUCTION_TYPE",
            type="value",
            actual_value=at,
            expected_value="Valid auction type (1, 2, or 3)",
            suggestion="Use 1 for First Price, 2 for Second Price, or 3 for Fixed Price auction",
        )


def check_banner_dimensions(request: Dict[str, Any]) -> Iterable[Issue]:
    for index, imp in _impressions(request):
        banner = _object(imp, "banner")
        width, height = banner.get("w"), banner.get("h")
        for name, value in (("w", width), ("h", height)):
            if _is_int(value) and value <= 0:
                label = "width" if name == "w" else "height"
                yield ValidationError(
                    field=f"imp.{index}.banner.{name}",
                    message=f"Banner {label} must be greater than 0",
                    code=f"ORTB_INVALID_BANNER_{label.upper()}",
                    type="value",
                    actual_value=value,
                    expected_value="positive integer",
                    suggestion=f"Set banner {label} to a positive value",
                )
        if _is_int(width) and _is_int(height) and width > 0 and height > 0:
            if (width, height) not in STANDARD_BANNER_SIZES:
                yield ValidationWarning(
                    field=f"imp.{index}.banner",
                    message=f"Banner size {width}x{height} is not a standard IAB size",
                    code="ORTB_NON_STANDARD_BANNER_SIZE",
                    actual_value=f"{width}x{height}",
                    recommended_value="Standard IAB banner size",
                    suggestion="Consider using standard IAB banner sizes for better fill rates",
                )
        pos = banner.get("pos")
        if _is_int(pos) and pos not in VALID_BANNER_POSITIONS:
            yield ValidationWarning(
                field=f"imp.{index}.banner.pos",
                message=f"Banner position '{pos}' is not a standard OpenRTB position",
                code="ORTB_INVALID_BANNER_POSITION_VALUE",
                actual_value=pos,
                recommended_value="Valid position (0-7)",
            )


def check_bid_floors(request: Dict[str, Any]) -> Iterable[Issue]:
    for index, imp in _impressions(request):
        floor = imp.get("bidfloor")
        if _is_number(floor) and floor < 0:
            yield ValidationError(
                field=f"imp.{index}.bidfloor",
                message="Bid floor cannot be negative",
                code="ORTB_NEGATIVE_BID_FLOOR",
                type="value",
                actual_value=floor,
                expected_value="non-negative number",
                suggestion="Set bid floor to 0 or a positive value",
            )
        currency = imp.get("bidfloorcur")
        if isinstance(currency, str) and currency.upper() not in ISO_4217_CODES:
            yield _currency_warning(f"imp.{index}.bidfloorcur", currency)


def check_currencies(request: Dict[str, Any]) -> Iterable[Issue]:
    currencies = request.get("cur")
    if not isinstance(currencies, list):
        return
    for index, currency in enumerate(currencies):
        if isinstance(currency, str) and currency.upper() not in ISO_4217_CODES:
            yield _currency_warning(f"cur.{index}", currency)


def _currency_warning(field: str, currency: str) -> ValidationWarning:
    return ValidationWarning(
        field=field,
        message=f"Currency code '{currency}' may not be a valid ISO-4217 code",
        code="ORTB_INVALID_CURRENCY_FORMAT",
        actual_value=currency,
        recommended_value="Valid ISO-4217 currency code (e.g., USD, EUR, GBP)",
        suggestion="Use a valid ISO-4217 currency code",
    )


def check_flags(request: Dict[str, Any]) -> Iterable[Issue]:
    device = _object(request, "device")
    flags = (
        ("test", request.get("test"), "Test flag should be 0 (live) or 1 (test mode)"),
        ("device.dnt", device.get("dnt"), "Do Not Track (dnt) should be 0 or 1"),
        ("device.lmt", device.get("lmt"), "Limit Ad Tracking (lmt) should be 0 or 1"),
    )
    for field, value, message in flags:
        if _is_int(value) and value not in (0, 1):
            yield ValidationWarning(
                field=field,
                message=message,
                code="ORTB_INVALID_FLAG_VALUE",
                actual_value=value,
                recommended_value="0 or 1",
            )


def check_device_enums(request: Dict[str, Any]) -> Iterable[Issue]:
    device = _object(request, "device")
    devicetype = device.get("devicetype")
    if _is_int(devicetype) and devicetype not in VALID_DEVICE_TYPES:
        yield ValidationWarning(
            field="device.devicetype",
            message=f"Device type '{devicetype}' is not a standard OpenRTB device type",
            code="ORTB_INVALID_DEVICE_TYPE_VALUE",
            actual_value=devicetype,
            recommended_value="Valid device type (1-7)",
        )
    connectiontype = device.get("connectiontype")
    if _is_int(connectiontype) and connectiontype not in VALID_CONNECTION_TYPES:
        yield ValidationWarning(
            field="device.connectiontype",
            message=f"Connection type '{connectiontype}' is not a standard OpenRTB connection type",
            code="ORTB_INVALID_CONNECTION_TYPE_VALUE",
            actual_value=connectiontype,
            recommended_value="Valid connection type (0-7)",
        )


def check_tmax(request: Dict[str, Any]) -> Iterable[Issue]:
    tmax = request.get("tmax")
    if not _is_int(tmax):
        return
    if tmax < LOW_TMAX_MS:
        yield ValidationWarning(
            field="tmax",
            message="Timeout (tmax) is very low and may result in fewer bids",
            code="ORTB_LOW_TIMEOUT_VALUE",
            actual_value=tmax,
            recommended_value="100-300ms",
        )
    elif tmax > HIGH_TMAX_MS:
        yield ValidationWarning(
            field="tmax",
            message="Timeout (tmax) is very high and may slow down ad serving",
            code="ORTB_HIGH_TIMEOUT_VALUE",
            actual_value=tmax,
            recommended_value="100-300ms",
        )


# --- Recommended fields ---

def check_recommended_fields(request: Dict[str, Any]) -> Iterable[Issue]:
    if request.get("site") is None and request.get("app") is None:
        yield ValidationWarning(
            field="site",
            message="Either a site or an app object is recommended to describe the inventory",
            code="ORTB_RECOMMENDED_FIELD_MISSING",
            recommended_value="site or app object",
            suggestion="Add a site object for web inventory or an app object for in-app inventory",
        )
    if request.get("device") is None:
        yield ValidationWarning(
            field="device",
            message="Device object is recommended for targeting and fraud detection",
            code="ORTB_RECOMMENDED_FIELD_MISSING",
            recommended_value="device object",
            suggestion="Add a device object with at least ua and ip",
        )


DEFAULT_RULES: Tuple[Rule, ...] = (
    check_unique_impression_ids,
    check_ad_format_present,
    check_site_app_exclusive,
    check_video_durations,
    check_auction_type,
    check_banner_dimensions,
    check_bid_floors,
    check_currencies,
    check_flags,
    check_device_enums,
    check_tmax,
    check_recommended_fields,
)


def apply_rules(
    request: Dict[str, Any],
    rules: Iterable[Rule] = DEFAULT_RULES,
) -> Tuple[List[ValidationError], List[ValidationWarning]]:
    """Run rules against a request dict and split the issues by severity."""
    errors: List[ValidationError] = []
    warnings: List[ValidationWarning] = []
    for rule in rules:
        for issue in rule(request):
            if isinstance(issue, ValidationError):
                errors.append(issue)
            else:
                warnings.append(issue)
    return errors, warnings
