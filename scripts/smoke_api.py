"""
Smoke checks for the Traffic Console API.
Run the API server first: python api_server.py
Then run this: python scripts/smoke_api.py
"""

import json

import requests

BASE_URL = "http://localhost:8000"


def _show(title, response):
    print("\n" + "=" * 50)
    print(f"CHECK: {title}")
    print("=" * 50)
    print(f"Status Code: {response.status_code}")
    print(f"Response: {json.dumps(response.json(), indent=2, ensure_ascii=False)[:1500]}")


def _auth(token):
    return {"Authorization": f"Bearer {token}"} if token else {}


def check_health():
    response = requests.get(f"{BASE_URL}/health")
    _show("Health Check", response)
    return response.status_code == 200


def check_index():
    response = requests.get(f"{BASE_URL}/")
    _show("API Info", response)
    return response.status_code == 200


def check_anonymous_menu():
    """Anonymous callers get the viewer menu."""
    response = requests.get(f"{BASE_URL}/api/menu")
    _show("Anonymous Menu", response)
    ids = [item["id"] for item in response.json().get("data", [])]
    return response.status_code == 200 and "authorities" not in ids


def check_invalid_token():
    response = requests.get(f"{BASE_URL}/api/licenses", headers=_auth("not-a-token"))
    _show("Invalid Token", response)
    return response.status_code == 401


def login(address):
    response = requests.post(f"{BASE_URL}/api/auth/login", json={"address": address})
    _show(f"Login {address}", response)
    if response.status_code == 200:
        return response.json()["data"]["token"]
    return None


def check_profile(token):
    response = requests.get(f"{BASE_URL}/api/user/profile", headers=_auth(token))
    _show("Get User Profile", response)
    return response.status_code == 200


def check_list(token, resource, **params):
    response = requests.get(f"{BASE_URL}/api/{resource}", headers=_auth(token), params=params)
    _show(f"List {resource} {params}", response)
    return response.status_code == 200


def check_forbidden(token, resource):
    response = requests.get(f"{BASE_URL}/api/{resource}", headers=_auth(token))
    _show(f"Forbidden {resource}", response)
    return response.status_code == 403


def check_dashboard(token):
    response = requests.get(f"{BASE_URL}/api/dashboard/stats", headers=_auth(token))
    _show("Dashboard Stats", response)
    return response.status_code == 200


def check_logout(token):
    response = requests.post(f"{BASE_URL}/api/auth/logout", headers=_auth(token))
    _show("Logout", response)
    return response.status_code == 200


def main():
    print("=" * 50)
    print("Traffic Console API Smoke Checks")
    print("=" * 50)
    print(f"Base URL: {BASE_URL}")
    print("Make sure the API server is running!")
    print()

    address = input("Enter a regional admin wallet address: ").strip()
    if not address:
        print("ERROR: wallet address is required")
        return

    results = {}

    try:
        results["Health Check"] = check_health()
        results["API Info"] = check_index()
        results["Anonymous Menu"] = check_anonymous_menu()
        results["Invalid Token"] = check_invalid_token()
        results["Anonymous Licenses"] = check_list(None, "licenses", page=1, limit=5)

        token = login(address)
        if token:
            results["Login"] = True
            results["Get Profile"] = check_profile(token)
            results["Scoped Violations"] = check_list(
                token, "violations", status="pending", sortBy="date", sortOrder="desc"
            )
            results["Authorities Forbidden"] = check_forbidden(token, "authorities")
            results["Dashboard"] = check_dashboard(token)
            results["Logout"] = check_logout(token)
        else:
            results["Login"] = False
            print("\nERROR: Could not login. Remaining checks skipped.")

    except requests.RequestException as e:
        print(f"\n\nERROR: {e}")

    print("\n" + "=" * 50)
    print("SUMMARY")
    print("=" * 50)
    passed = sum(1 for v in results.values() if v)
    for name, result in results.items():
        status = "✓ PASS" if result else "✗ FAIL"
        print(f"{status}: {name}")

    print(f"\nTotal: {passed}/{len(results)} checks passed")
    print("=" * 50)


if __name__ == "__main__":
    main()
