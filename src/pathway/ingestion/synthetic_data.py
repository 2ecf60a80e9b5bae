"""
Synthetic Admission Generator

Generates realistic raw admission payloads and a Michigan facility/marketer
directory for demos and tests. Output uses the same camelCase shape as the
EHR feed so it flows through the normalizer like real data.
"""

import random
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List

import structlog

from pathway.models.routing import Facility, GeoPoint, Marketer
from pathway.routing.directory import RoutingDirectory

logger = structlog.get_logger(__name__)


# =============================================================================
# Reference Data
# =============================================================================

FIRST_NAMES_MALE = [
    "James", "John", "Robert", "Michael", "William", "David", "Richard", "Joseph",
    "Thomas", "Charles", "Daniel", "Donald", "George", "Kenneth", "Ronald",
]

FIRST_NAMES_FEMALE = [
    "Mary", "Patricia", "Linda", "Barbara", "Elizabeth", "Susan", "Margaret",
    "Dorothy", "Nancy", "Karen", "Betty", "Helen", "Sandra", "Carol", "Ruth",
]

LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Miller", "Davis", "Wilson",
    "Anderson", "Taylor", "Thomas", "Moore", "Jackson", "Martin", "Lee", "Thompson",
    "White", "Harris", "Clark", "Lewis", "Walker", "Hall", "Young", "King",
]

# (id, name, address, zip, region, lat, lon)
MICHIGAN_FACILITIES = [
    ("HF-001", "Henry Ford Health System", "2799 W Grand Blvd, Detroit, MI", "48202",
     "Southeast Michigan", 42.3674, -83.0846),
    ("CW-001", "Corewell Health (Beaumont)", "3601 W 13 Mile Rd, Royal Oak, MI", "48073",
     "Southeast Michigan", 42.5170, -83.1946),
    ("UM-001", "University of Michigan Health", "1500 E Medical Center Dr, Ann Arbor, MI", "48109",
     "Southeast Michigan", 42.2843, -83.7285),
    ("AS-001", "Ascension Michigan", "22101 Moross Rd, Detroit, MI", "48236",
     "Southeast Michigan", 42.4166, -82.9160),
    ("CS-001", "Corewell Health (Spectrum)", "100 Michigan St NE, Grand Rapids, MI", "49503",
     "West Michigan", 42.9697, -85.6650),
    ("BR-001", "Bronson Healthcare", "601 John St, Kalamazoo, MI", "49007",
     "West Michigan", 42.2870, -85.5800),
    ("SP-001", "Sparrow Health System", "1215 E Michigan Ave, Lansing, MI", "48912",
     "Central Michigan", 42.7336, -84.5307),
    ("MN-001", "Munson Healthcare", "1105 Sixth St, Traverse City, MI", "49684",
     "Northern Michigan", 44.7590, -85.6390),
]

# (id, name, base lat, base lon, regions, radius)
MARKETERS = [
    ("MKT-001", "Sarah Johnson", 42.3314, -83.0458, ["Southeast Michigan"], None),
    ("MKT-002", "Mike Rodriguez", 42.6064, -83.1498, ["Southeast Michigan"], None),
    ("MKT-003", "Emily Chen", 42.9634, -85.6681, ["West Michigan"], None),
    ("MKT-004", "David Park", 42.7325, -84.5555, [], 60.0),
]

# (diagnosis text, icd-10 codes, acuity weights low/medium/high)
DIAGNOSES = [
    ("Acute heart failure with reduced ejection fraction", ["I50.21"], (1, 3, 4)),
    ("Chronic obstructive pulmonary disease with acute exacerbation", ["J44.1"], (1, 4, 3)),
    ("Cerebral infarction", ["I63.9"], (1, 3, 4)),
    ("Closed fracture of right femoral neck", ["S72.001A"], (1, 4, 2)),
    ("Sepsis, unspecified organism", ["A41.9"], (0, 2, 5)),
    ("Community-acquired pneumonia", ["J18.9"], (2, 4, 2)),
    ("NSTEMI myocardial infarction", ["I21.4"], (1, 3, 3)),
    ("Acute kidney failure", ["N17.9"], (2, 3, 2)),
    ("Cellulitis of left lower limb", ["L03.116"], (3, 3, 1)),
    ("Type 2 diabetes with hyperglycemia", ["E11.65"], (3, 3, 1)),
    ("Primary osteoarthritis, right knee - total knee arthroplasty", ["M17.11"], (4, 2, 0)),
    ("Syncope and collapse", ["R55"], (4, 2, 1)),
]

COMORBIDITIES = [
    ("Type 2 diabetes", "E11.9"),
    ("Hypertension", "I10"),
    ("Coronary artery disease", "I25.10"),
    ("Atrial fibrillation", "I48.91"),
    ("Chronic kidney disease", "N18.3"),
    ("COPD", "J44.9"),
    ("Obesity", "E66.9"),
    ("Depression", "F32.9"),
    ("Hyperlipidemia", "E78.5"),
]

INSURANCE = [
    ("Medicare", 5),
    ("Medicare Advantage - Humana", 2),
    ("Priority Health", 2),
    ("Blue Cross Blue Shield of Michigan", 2),
    ("Medicaid - Molina", 1),
    ("Self Pay", 1),
]

STATUSES = [
    ("admitted", 6),
    ("contacted", 3),
    ("secured", 2),
    ("lost", 1),
    ("discharged", 1),
]

DESTINATIONS = [
    (None, 6),
    ("home", 3),
    ("snf", 1),
    ("rehab", 1),
]

CASE_MANAGERS = [
    "Lisa Thompson, MSW", "Karen White, RN", "Angela Brooks, LMSW", "Paul Nguyen, RN",
]


def default_directory() -> RoutingDirectory:
    """Michigan facilities and the field marketing team."""
    facilities = [
        Facility(
            id=f[0],
            name=f[1],
            address=f[2],
            zip_code=f[3],
            region=f[4],
            location=GeoPoint(lat=f[5], lon=f[6]),
        )
        for f in MICHIGAN_FACILITIES
    ]
    marketers = [
        Marketer(
            id=m[0],
            name=m[1],
            base=GeoPoint(lat=m[2], lon=m[3]),
            coverage_regions=m[4],
            coverage_radius_miles=m[5],
        )
        for m in MARKETERS
    ]
    return RoutingDirectory(facilities=facilities, marketers=marketers)


class SyntheticAdmissionGenerator:
    """
    Generator for synthetic raw admissions.

    Usage:
        generator = SyntheticAdmissionGenerator(seed=42)
        admissions = generator.generate_admissions(40, as_of=date(2024, 1, 16))
    """

    def __init__(self, seed: int | None = None):
        self._rng = random.Random(seed)

    def _weighted(self, options):
        values = [o[0] for o in options]
        weights = [o[1] for o in options]
        return self._rng.choices(values, weights=weights, k=1)[0]

    def generate_admission(self, index: int, as_of: date) -> Dict[str, Any]:
        """Generate one raw admission relative to `as_of`."""
        rng = self._rng
        gender = rng.choice(["Male", "Female"])
        first = rng.choice(FIRST_NAMES_MALE if gender == "Male" else FIRST_NAMES_FEMALE)
        last = rng.choice(LAST_NAMES)

        facility = rng.choice(MICHIGAN_FACILITIES)
        diagnosis, codes, acuity_weights = rng.choice(DIAGNOSES)
        acuity = rng.choices(["low", "medium", "high"], weights=acuity_weights, k=1)[0]

        comorbidity_count = rng.choices([0, 1, 2, 3, 4, 5], weights=[2, 3, 4, 4, 2, 1], k=1)[0]
        comorbidities = rng.sample(COMORBIDITIES, comorbidity_count)

        age = rng.randint(55, 94)
        admitted = datetime.combine(
            as_of - timedelta(days=rng.randint(0, 6)),
            time(hour=rng.randint(0, 23), minute=rng.choice([0, 15, 30, 45])),
        )
        dob = date(admitted.year - age, rng.randint(1, 12), rng.randint(1, 28))

        status = self._weighted(STATUSES)
        contact_attempts = 0
        if status in ("contacted", "secured", "lost"):
            contact_attempts = rng.randint(1, 4)

        admission: Dict[str, Any] = {
            "id": f"pred-{index + 1:03d}",
            "patientName": f"{first} {last}",
            "mrn": f"MRN-{rng.randint(100000, 999999)}",
            "dob": dob.isoformat(),
            "gender": gender,
            "address": f"{rng.randint(100, 9999)} {rng.choice(['Main', 'Oak', 'Maple', 'Woodward', 'Grand River'])} St",
            "zipCode": facility[3],
            "phone": f"({rng.choice(['313', '248', '734', '616', '517'])}) 555-{rng.randint(1000, 9999)}",
            "admissionDate": admitted.isoformat() + "Z",
            "facility": facility[1],
            "facilityId": facility[0],
            "unit": rng.choice(["Medical ICU", "Cardiology", "Med-Surg", "Step-down", "Orthopedics"]),
            "admittingPhysician": f"Dr. {rng.choice(FIRST_NAMES_FEMALE + FIRST_NAMES_MALE)} {rng.choice(LAST_NAMES)}",
            "primaryDiagnosis": diagnosis,
            "icd10Codes": codes + [c[1] for c in comorbidities],
            "comorbidities": [c[0] for c in comorbidities],
            "insurance": self._weighted(INSURANCE),
            "insuranceId": f"INS-{rng.randint(100000, 999999)}",
            "acuityLevel": acuity,
            "status": status,
            "contactAttempts": contact_attempts,
            "caseManager": rng.choice(CASE_MANAGERS),
        }

        destination = self._weighted(DESTINATIONS)
        if destination:
            admission["dischargeDestination"] = destination

        if contact_attempts:
            admission["lastContactDate"] = (admitted + timedelta(days=1)).isoformat() + "Z"

        if status == "secured":
            admission["referralSecured"] = True
        elif status == "discharged":
            admission["referralSecured"] = rng.random() < 0.6
            admission["actualDischarge"] = (as_of - timedelta(days=rng.randint(0, 1))).isoformat() + "T14:00:00Z"

        return admission

    def generate_admissions(self, count: int = 40, as_of: date | None = None) -> List[Dict[str, Any]]:
        """Generate a batch of raw admissions."""
        as_of = as_of or date.today()
        admissions = [self.generate_admission(i, as_of) for i in range(count)]
        logger.info("Generated synthetic admissions", count=count, as_of=as_of.isoformat())
        return admissions
