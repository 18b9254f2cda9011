"""
Deterministic sample records for every console entity.

Used when no database is configured so the API and CLI have data to serve.
"""

import random
from datetime import date, timedelta
from typing import Dict, List

from faker import Faker

from traffic_console.config import DEFAULT_USER_CONFIGS, SAMPLE_CITIES, SEED

# how many rows to generate for each entity
COUNTS = {
    "licenses": 150,
    "vehicles": 180,
    "violations": 200,
    "authorities": 20,
    "news": 6,
    "notifications": 8,
}

LICENSE_TYPES = ["A1", "A2", "B1", "B2", "C", "D", "E", "F"]
VEHICLE_TYPES = ["Ô tô con", "Xe máy", "Ô tô tải", "Xe khách", "Xe đầu kéo"]
VEHICLE_BRANDS = {
    "Toyota": ["Vios", "Camry", "Innova"],
    "Honda": ["City", "Civic", "Wave Alpha"],
    "Ford": ["Ranger", "Everest"],
    "Mazda": ["CX-5", "Mazda3"],
    "Hyundai": ["Accent", "Tucson"],
    "KIA": ["Morning", "Seltos"],
    "Vinfast": ["VF 5", "VF 8", "Lux A2.0"],
}
COLORS = ["Trắng", "Đen", "Bạc", "Xám", "Đỏ", "Xanh"]
VIOLATION_TYPES = [
    "Vượt đèn đỏ",
    "Vượt tốc độ cho phép",
    "Nồng độ cồn vượt mức",
    "Không đội mũ bảo hiểm",
    "Dừng đỗ sai quy định",
    "Chuyển làn không xi-nhan",
    "Sử dụng điện thoại khi lái xe",
    "Lấn làn đường",
]
FINES = [200_000, 500_000, 800_000, 1_000_000, 2_000_000, 4_000_000, 6_000_000]
AUTHORITY_TYPES = {
    "police_department": "Phòng CSGT",
    "inspection_center": "Trung tâm đăng kiểm",
    "exam_center": "Trung tâm sát hạch",
    "registration_office": "Điểm đăng ký xe",
}
NEWS_CATEGORIES = ["traffic-law", "announcement", "guide", "news"]
NOTIFICATION_TYPES = ["info", "warning", "success", "error"]


def _day(fake: Faker, start: date, end: date) -> date:
    return fake.date_between(start_date=start, end_date=end)


def _licenses(fake: Faker, rng: random.Random, n: int) -> List[dict]:
    rows = []
    for i in range(n):
        issued = _day(fake, date(2015, 1, 1), date(2024, 10, 31))
        city = rng.choice(SAMPLE_CITIES)
        rows.append({
            "id": f"lic_{i + 1:03d}",
            "licenseNumber": fake.numerify("GPLX########"),
            "holderName": fake.name(),
            "idCard": fake.numerify("0###########"),
            "licenseType": rng.choice(LICENSE_TYPES),
            "issueDate": issued.isoformat(),
            "expiryDate": (issued + timedelta(days=3652)).isoformat(),
            "status": rng.choices(["active", "expired", "suspended", "revoked"], weights=[70, 15, 10, 5])[0],
            "violations": rng.randint(0, 5),
            "city": city,
            "issuePlace": f"Sở GTVT {city}",
            "walletAddress": "0x" + fake.hexify("^" * 40),
            "onBlockchain": rng.random() < 0.4,
        })
    return rows


def _vehicles(fake: Faker, rng: random.Random, n: int) -> List[dict]:
    rows = []
    for i in range(n):
        registered = _day(fake, date(2016, 1, 1), date(2024, 10, 31))
        last_inspection = _day(fake, registered, date(2024, 10, 31))
        brand = rng.choice(list(VEHICLE_BRANDS))
        rows.append({
            "id": f"veh_{i + 1:03d}",
            "plateNumber": f"{rng.randint(11, 99)}A-{rng.randint(100, 999)}.{rng.randint(10, 99)}",
            "owner": fake.name(),
            "ownerPhone": fake.numerify("09########"),
            "vehicleType": rng.choice(VEHICLE_TYPES),
            "brand": brand,
            "model": rng.choice(VEHICLE_BRANDS[brand]),
            "color": rng.choice(COLORS),
            "registrationDate": registered.isoformat(),
            "lastInspection": last_inspection.isoformat(),
            "nextInspection": (last_inspection + timedelta(days=365)).isoformat(),
            "status": rng.choices(["valid", "expired", "pending"], weights=[75, 15, 10])[0],
            "city": rng.choice(SAMPLE_CITIES),
            "onBlockchain": rng.random() < 0.3,
        })
    return rows


def _violations(fake: Faker, rng: random.Random, n: int, licenses: List[dict], vehicles: List[dict]) -> List[dict]:
    rows = []
    for i in range(n):
        lic = rng.choice(licenses)
        veh = rng.choice(vehicles)
        status = rng.choices(["pending", "paid", "overdue"], weights=[40, 45, 15])[0]
        day = _day(fake, date(2024, 1, 1), date(2024, 10, 31))
        row = {
            "id": f"vio_{i + 1:03d}",
            "violatorName": lic["holderName"],
            "licenseNumber": lic["licenseNumber"],
            "plateNumber": veh["plateNumber"],
            "violationType": rng.choice(VIOLATION_TYPES),
            "location": fake.street_address(),
            "city": lic["city"],
            "date": day.isoformat(),
            "fine": rng.choice(FINES),
            "status": status,
            "points": rng.randint(0, 4),
            "officer": f"CB. {fake.name()}",
        }
        if status == "paid":
            row["paymentDate"] = (day + timedelta(days=rng.randint(1, 20))).isoformat()
            row["paymentMethod"] = rng.choice(["cash", "bank_transfer", "e_wallet"])
        rows.append(row)
    return rows


def _authorities(fake: Faker, rng: random.Random, n: int) -> List[dict]:
    rows = []
    for i in range(n):
        kind = rng.choice(list(AUTHORITY_TYPES))
        city = SAMPLE_CITIES[i % len(SAMPLE_CITIES)]
        rows.append({
            "id": f"auth_{i + 1:03d}",
            "name": f"{AUTHORITY_TYPES[kind]} {city}",
            "code": f"{kind[:3].upper()}-{i + 1:03d}",
            "type": kind,
            "address": fake.street_address(),
            "city": city,
            "director": fake.name(),
            "phone": fake.numerify("02#-####-####"),
            "email": f"contact{i + 1:03d}@csgt.gov.vn",
            "employees": rng.randint(15, 300),
            "status": "active" if rng.random() < 0.85 else "inactive",
            "establishedDate": _day(fake, date(1990, 1, 1), date(2020, 12, 31)).isoformat(),
        })
    return rows


def _news(fake: Faker, rng: random.Random, n: int) -> List[dict]:
    rows = []
    for i in range(n):
        title = fake.sentence(nb_words=8).rstrip(".")
        rows.append({
            "id": f"news_{i + 1:03d}",
            "title": title,
            "slug": f"news-{i + 1}",
            "summary": fake.sentence(nb_words=16),
            "content": fake.paragraph(nb_sentences=6),
            "category": rng.choice(NEWS_CATEGORIES),
            "author": fake.name(),
            "publishDate": _day(fake, date(2024, 1, 1), date(2024, 10, 31)).isoformat(),
            "status": rng.choice(["published", "published", "draft", "archived"]),
            "views": rng.randint(0, 5000),
            "tags": fake.words(nb=3),
            "featured": i == 0,
        })
    return rows


def _notifications(fake: Faker, rng: random.Random, n: int) -> List[dict]:
    return [
        {
            "id": f"notif_{i + 1:03d}",
            "walletAddress": rng.choice(DEFAULT_USER_CONFIGS)["address"],
            "title": fake.sentence(nb_words=5).rstrip("."),
            "message": fake.sentence(nb_words=14),
            "type": rng.choice(NOTIFICATION_TYPES),
            "read": rng.random() < 0.5,
            "date": _day(fake, date(2024, 9, 1), date(2024, 10, 31)).isoformat(),
        }
        for i in range(n)
    ]


def generate_dataset(seed: int = SEED) -> Dict[str, List[dict]]:
    """Return ``{entity name: records}``; the same seed gives the same data."""
    fake = Faker("vi_VN")
    fake.seed_instance(seed)
    rng = random.Random(seed)

    licenses = _licenses(fake, rng, COUNTS["licenses"])
    vehicles = _vehicles(fake, rng, COUNTS["vehicles"])
    return {
        "licenses": licenses,
        "vehicles": vehicles,
        "violations": _violations(fake, rng, COUNTS["violations"], licenses, vehicles),
        "authorities": _authorities(fake, rng, COUNTS["authorities"]),
        "news": _news(fake, rng, COUNTS["news"]),
        "notifications": _notifications(fake, rng, COUNTS["notifications"]),
    }
