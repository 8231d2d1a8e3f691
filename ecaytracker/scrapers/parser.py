import re

# "CI$ 5,000", "KYD$ 6,000", "US$ 16,000", "CI$5000"
PRICE_RE = re.compile(r"(CI\$|KYD\$?|US\$?)\s*([\d,]+(?:\.\d+)?)", re.IGNORECASE)
YEAR_RE = re.compile(r"\b((?:19|20)\d{2})\b")
ADVERT_ID_RE = re.compile(r"/advert/(\d+)$")
LOCATION_RE = re.compile(
    r"(on island|off island|grand cayman|cayman brac|little cayman|george town|bodden town|west bay|north side|east end)",
    re.IGNORECASE,
)
MILEAGE_RE = re.compile(r"(over\s+[\d,]+|under\s+[\d,]+|[\d,]+\s*(?:km|miles|mi)\b)", re.IGNORECASE)
DIGITS_RE = re.compile(r"[\d,]+")

KNOWN_MAKES = [
    "Acura", "Alfa Romeo", "Aston Martin", "Audi", "Bentley", "BMW", "Bugatti",
    "Buick", "Cadillac", "Chevrolet", "Chrysler", "Citroën", "Dodge", "Ferrari",
    "Fiat", "Ford", "Genesis", "GMC", "Honda", "Hyundai", "Infiniti", "Jaguar",
    "Jeep", "Kia", "Lamborghini", "Land Rover", "Lexus", "Lincoln", "Lotus",
    "Maserati", "Mazda", "McLaren", "Mercedes", "Mercedes-Benz", "MINI", "Mitsubishi",
    "Nissan", "Peugeot", "Pontiac", "Porsche", "Ram", "Rolls-Royce", "Subaru",
    "Suzuki", "Tesla", "Toyota", "Volkswagen", "Volvo",
]

# Longest first so "Mercedes-Benz" wins over "Mercedes"
_MAKES_BY_LENGTH = sorted(KNOWN_MAKES, key=len, reverse=True)


def parse_card(card_text: str, url: str, image_url: str = "") -> dict:
    """Parse the text of one listing card into a listing dict."""
    listing = {
        "external_id": "",
        "url": url,
        "title": "",
        "make": "",
        "model": "",
        "year": None,
        "mileage": None,
        "price": 0.0,
        "currency": "",
        "location": "",
        "images": [image_url] if image_url else None,
    }

    m = ADVERT_ID_RE.search(url)
    if m:
        listing["external_id"] = m.group(1)

    price, currency = parse_price(card_text)
    if price is not None:
        listing["price"] = price
        listing["currency"] = currency

    # The last year in the text is the most reliable one
    years = YEAR_RE.findall(card_text)
    if years:
        listing["year"] = int(years[-1])

    m = LOCATION_RE.search(card_text)
    if m:
        listing["location"] = m.group(1).lower().title()

    listing["mileage"] = parse_mileage(card_text)
    listing["title"] = extract_title(card_text)
    listing["make"], listing["model"] = split_make_model(listing["title"])
    return listing


def parse_price(text: str) -> tuple[float | None, str]:
    m = PRICE_RE.search(text)
    if not m:
        return None, ""
    try:
        return float(m.group(2).replace(",", "")), normalise_currency(m.group(1))
    except ValueError:
        return None, ""


def parse_mileage(text: str) -> int | None:
    """Mileage from phrases like "Over 100,000", "85,000 km" or "60000 miles"."""
    m = MILEAGE_RE.search(text)
    if not m:
        return None
    digits = DIGITS_RE.search(m.group(1))
    if not digits:
        return None
    value = digits.group(0).replace(",", "")
    return int(value) if value else None


def extract_title(text: str) -> str:
    for line in text.replace("\t", " ").split("\n"):
        line = line.strip()
        if not line:
            continue
        # price-only line
        if PRICE_RE.search(line) and len(line) < 20:
            continue
        # detail line, e.g. "Automatic · 2018 · On Island"
        if "·" in line:
            continue
        return line
    return " ".join(text.split())[:60]


def split_make_model(title: str) -> tuple[str, str]:
    """e.g. "2018 Toyota Camry SE" -> ("Toyota", "Camry SE")."""
    stripped = " ".join(YEAR_RE.sub("", title).split())

    upper = stripped.upper()
    for make in _MAKES_BY_LENGTH:
        if upper.startswith(make.upper()):
            rest = stripped[len(make):]
            if rest and rest[0].isalnum():
                continue
            return make, rest.strip()

    parts = stripped.split()
    if not parts:
        return "", title
    return parts[0], " ".join(parts[1:])


def normalise_currency(symbol: str) -> str:
    s = symbol.upper().strip()
    if s.startswith("CI") or s.startswith("KYD"):
        return "KYD"
    if s.startswith("US"):
        return "USD"
    return s


def rejection_reason(listing: dict, min_price: float) -> str | None:
    """Why a parsed card should be skipped, or None to keep it."""
    if not listing["title"] and not listing["price"]:
        return "empty card"
    if listing["year"] is None:
        return "no year"
    if listing["price"] < min_price:
        return f"price too low ({listing['price']:.0f})"
    if "price upon request" in listing["title"].lower():
        return "price upon request"
    return None
