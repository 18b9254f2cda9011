"""
Shared fixtures: permissions, a small registry and hand-built records.
"""

import pytest

from traffic_console.rbac import (
    REGIONAL_ADMIN,
    SUPER_ADMIN,
    VIEWER,
    build_registry,
    permissions_for,
)
from traffic_console.repository import InMemoryRepository
from traffic_console.services import build_services

HANOI_ADMIN = "0xE083813Ddd4A50ACA941db0ddcDdF10C5A9aee04"
THAI_NGUYEN_ADMIN = "0xF2438715BBF8C01d4355690cfbC66558a22dEC11"
ROOT_ADMIN = "0x335145400C12958600C0542F9180e03B917F7BbB"


@pytest.fixture
def registry():
    return build_registry([
        {"address": ROOT_ADMIN, "role": SUPER_ADMIN, "location_scope": "all",
         "name": "Root", "organization": "HQ"},
        {"address": HANOI_ADMIN, "role": REGIONAL_ADMIN, "location_scope": "hanoi",
         "name": "Hanoi admin", "organization": "Hanoi PD"},
        {"address": THAI_NGUYEN_ADMIN, "role": REGIONAL_ADMIN, "location_scope": "thai-nguyen",
         "name": "Thai Nguyen admin", "organization": "TN PD"},
    ])


@pytest.fixture
def super_admin():
    return permissions_for(SUPER_ADMIN, "all")


@pytest.fixture
def hanoi_admin():
    return permissions_for(REGIONAL_ADMIN, "hanoi")


@pytest.fixture
def viewer():
    return permissions_for(VIEWER, "all")


def make_records():
    return {
        "licenses": [
            {"id": "lic_001", "holderName": "Nguyễn Văn A", "licenseNumber": "GPLX00000001",
             "idCard": "001", "licenseType": "B2", "status": "active", "city": "Hà Nội",
             "issueDate": "2020-01-10", "onBlockchain": True},
            {"id": "lic_002", "holderName": "Trần Thị B", "licenseNumber": "GPLX00000002",
             "idCard": "002", "licenseType": "A1", "status": "expired", "city": "Thái Nguyên",
             "issueDate": "2019-05-01", "onBlockchain": False},
            {"id": "lic_003", "holderName": "Lê Văn C", "licenseNumber": "GPLX00000003",
             "idCard": "003", "licenseType": "B2", "status": "active", "city": "Đà Nẵng",
             "issueDate": "2021-03-15", "onBlockchain": False},
        ],
        "violations": [
            {"id": "vio_001", "violatorName": "Nguyễn Văn A", "licenseNumber": "GPLX00000001",
             "plateNumber": "30A-123.45", "violationType": "Vượt đèn đỏ", "location": "Phố Huế",
             "city": "Hà Nội", "date": "2024-03-01", "fine": 1_000_000, "status": "pending",
             "points": 2, "officer": "CB. X"},
            {"id": "vio_002", "violatorName": "Nguyễn Văn A", "licenseNumber": "GPLX00000001",
             "plateNumber": "30A-123.45", "violationType": "Dừng đỗ sai quy định", "location": "Kim Mã",
             "city": "Hà Nội", "date": "2024-02-01", "fine": 500_000, "status": "paid",
             "points": 0, "officer": "CB. Y", "paymentDate": "2024-02-05", "paymentMethod": "cash"},
            {"id": "vio_003", "violatorName": "Trần Thị B", "licenseNumber": "GPLX00000002",
             "plateNumber": "20B-555.11", "violationType": "Vượt tốc độ cho phép", "location": "QL3",
             "city": "Thái Nguyên", "date": "2024-04-01", "fine": 2_000_000, "status": "pending",
             "points": 3, "officer": "CB. Z"},
        ],
        "authorities": [
            {"id": "auth_001", "name": "Phòng CSGT Hà Nội", "code": "POL-001", "type": "police_department",
             "address": "1 Trần Hưng Đạo", "city": "Hà Nội", "status": "active"},
        ],
        "news": [
            {"id": "news_001", "title": "Luật mới", "summary": "Tóm tắt", "category": "traffic-law",
             "author": "Ban biên tập", "publishDate": "2024-06-01", "status": "published",
             "featured": True, "tags": ["luật"]},
            {"id": "news_002", "title": "Bản nháp", "summary": "Nháp", "category": "news",
             "author": "Ban biên tập", "publishDate": "2024-07-01", "status": "draft", "featured": True},
            {"id": "news_003", "title": "Thông báo", "summary": "Tin", "category": "announcement",
             "author": "Ban biên tập", "publishDate": "2024-08-01", "status": "published", "featured": True},
            {"id": "news_004", "title": "Hướng dẫn", "summary": "HD", "category": "guide",
             "author": "Ban biên tập", "publishDate": "2024-09-01", "status": "published", "featured": False},
        ],
        "notifications": [
            {"id": "notif_001", "walletAddress": HANOI_ADMIN, "title": "A", "message": "m",
             "type": "info", "read": False, "date": "2024-10-01"},
            {"id": "notif_002", "walletAddress": HANOI_ADMIN.lower(), "title": "B", "message": "m",
             "type": "warning", "read": True, "date": "2024-10-02"},
            {"id": "notif_003", "walletAddress": ROOT_ADMIN, "title": "C", "message": "m",
             "type": "info", "read": True, "date": "2024-10-03"},
        ],
    }


@pytest.fixture
def repositories():
    return {name: InMemoryRepository(rows) for name, rows in make_records().items()}


@pytest.fixture
def services(repositories):
    return build_services(repositories)
