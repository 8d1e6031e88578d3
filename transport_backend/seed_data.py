# Demo data only. Names, plates and companies are fictitious.
import logging
import random
from datetime import date, timedelta

from transport_backend.models.container_type import ContainerType
from transport_backend.models.driver import Driver
from transport_backend.models.location import Location
from transport_backend.models.subcontractor import Subcontractor
from transport_backend.models.trip import Trip
from transport_backend.models.vehicle import Vehicle
from transport_backend.services.mission_service import MissionService
from transport_backend.services.trip_service import TripService

logger = logging.getLogger(__name__)

LOCATIONS = [
    ("Port of Abidjan", "Lagunes"),
    ("Bouake Depot", "Vallee du Bandama"),
    ("Yamoussoukro Hub", "Lacs"),
    ("San Pedro Port", "Bas-Sassandra"),
    ("Korhogo Warehouse", "Savanes"),
]

CONTAINER_TYPES = [
    ("20' Dry", 20, "Standard 20 foot dry container"),
    ("40' Dry", 40, "Standard 40 foot dry container"),
    ("40' High Cube", 40, "40 foot high cube"),
    ("45' Pallet Wide", 45, None),
]

DRIVERS = [
    ("Kouame", "Yao", "+225 07 00 00 01", "CI-DL-0001"),
    ("Traore", "Awa", "+225 07 00 00 02", "CI-DL-0002"),
    ("Kone", "Ibrahim", "+225 07 00 00 03", "CI-DL-0003"),
    ("Bamba", "Mariam", "+225 07 00 00 04", "CI-DL-0004"),
]

VEHICLES = [
    ("AB-1234-CI", "Mercedes", "Actros", 2018, 182000),
    ("AB-5678-CI", "Volvo", "FH16", 2020, 96000),
    ("CD-9012-CI", "Renault", "T480", 2016, 231500),
]

SUBCONTRACTORS = [
    ("Lagune Transit SARL", "Serge Aka", "transit@example.com"),
    ("Savane Logistique", "Fatou Diallo", "contact@example.com"),
]


def get_or_create(session, model, defaults=None, **kwargs):
    instance = session.query(model).filter_by(**kwargs).first()
    if instance:
        return instance
    params = dict(kwargs)
    if defaults:
        params.update(defaults)
    instance = model(**params)
    session.add(instance)
    session.commit()
    return instance


def seed_reference_data(session):
    locations = [get_or_create(session, Location, name=name, defaults={'region': region})
                 for name, region in LOCATIONS]
    container_types = [get_or_create(session, ContainerType, name=name,
                                     defaults={'size_feet': size, 'description': description})
                       for name, size, description in CONTAINER_TYPES]
    logger.info(f"Seeded {len(locations)} locations and {len(container_types)} container types")
    return locations, container_types


def seed_fleet(session):
    drivers = [
        get_or_create(session, Driver, license_number=licence,
                      defaults={'last_name': last, 'first_name': first, 'phone': phone,
                                'hire_date': date(2019, 1, 15)})
        for last, first, phone, licence in DRIVERS
    ]
    vehicles = [
        get_or_create(session, Vehicle, plate_number=plate,
                      defaults={'make': make, 'model': model, 'year': year, 'odometer': odometer})
        for plate, make, model, year, odometer in VEHICLES
    ]
    logger.info(f"Seeded {len(drivers)} drivers and {len(vehicles)} vehicles")
    return drivers, vehicles


def seed_trips(session, drivers, vehicles, locations, container_types, days=60):
    if session.query(Trip).count():
        logger.info("Trips already present, skipping trip seed")
        return 0

    trip_service = TripService(session)
    rng = random.Random(42)
    today = date.today()
    created = 0
    for offset in range(days, 0, -2):
        vehicle = rng.choice(vehicles)
        origin, destination = rng.sample(locations, 2)
        distance = rng.randint(80, 600)
        planned = round(distance * 0.35, 1)
        start = vehicle.odometer
        trip_service.create({
            'trip_date': today - timedelta(days=offset),
            'driver_id': rng.choice(drivers).id,
            'vehicle_id': vehicle.id,
            'origin_id': origin.id,
            'destination_id': destination.id,
            'start_odometer': start,
            'end_odometer': start + distance,
            'planned_fuel': planned,
            'actual_fuel': round(planned * rng.uniform(0.9, 1.2), 1),
            'fuel_price': 715,
            'toll_cost': rng.choice([0, 2500, 5000]),
            'other_costs': rng.choice([0, 1000]),
            'status': 'completed',
            'containers': [{
                'container_type_id': rng.choice(container_types).id,
                'container_number': f"MSKU{rng.randint(1000000, 9999999)}",
                'quantity': rng.randint(1, 2),
                'delivery_status': 'delivered',
            }],
        })
        vehicle.odometer = start + distance
        session.commit()
        created += 1
    logger.info(f"Seeded {created} trips")
    return created


def seed_missions(session, locations, container_types):
    subcontractors = [
        get_or_create(session, Subcontractor, company_name=name,
                      defaults={'contact_name': contact, 'email': email})
        for name, contact, email in SUBCONTRACTORS
    ]
    if any(s.missions for s in subcontractors):
        return 0

    mission_service = MissionService(session)
    today = date.today()
    amounts = [450000, 780000, 1200000, 315000]
    for index, amount in enumerate(amounts):
        origin, destination = locations[index % len(locations)], locations[(index + 1) % len(locations)]
        mission_service.create({
            'subcontractor_id': subcontractors[index % len(subcontractors)].id,
            'mission_date': today - timedelta(days=7 * (index + 1)),
            'origin_id': origin.id,
            'destination_id': destination.id,
            'container_type_id': container_types[index % len(container_types)].id,
            'quantity': 1,
            'total_amount': amount,
            'advance_paid': index % 2 == 0,
        })
    logger.info(f"Seeded {len(amounts)} subcontracted missions")
    return len(amounts)


def seed(session):
    """Load a small, repeatable demo data set. Safe to run more than once."""
    locations, container_types = seed_reference_data(session)
    drivers, vehicles = seed_fleet(session)
    seed_trips(session, drivers, vehicles, locations, container_types)
    seed_missions(session, locations, container_types)
    logger.info("Seed complete")
