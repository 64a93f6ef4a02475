"""
In-memory city filters shown above each destination's package grid.

The registry lives for the lifetime of one application instance and is not
persisted; every app gets its own copy of the defaults.
"""

import copy
import re
from collections import Counter
from typing import Iterable

from tripsee.core.schemas import CityFilter

_DEFAULT_CITY_NAMES: dict[str, list[str]] = {
    "bali": ["Kuta", "Ubud", "Seminyak", "Umalas", "Nusa Penida", "Gili T", "Benoa", "Jineng"],
    "vietnam": [
        "Ho Chi Minh",
        "Da Nang",
        "Hanoi",
        "Ha Long Bay",
        "Krong Siem Reap",
        "Phnom Penh",
        "Hoi An",
        "Phu Quoc",
        "Sa Pa",
        "Mui Ne",
        "Nha Trang",
        "Hue",
    ],
    "thailand": [
        "Bangkok",
        "Phuket",
        "Chiang Mai",
        "Krabi",
        "Koh Samui",
        "Ayutthaya",
        "Pattaya",
        "Hua Hin",
    ],
    "singapore": [
        "Singapore City",
        "Sentosa",
        "Marina Bay",
        "Chinatown",
        "Little India",
        "Orchard Road",
        "Clarke Quay",
    ],
    "malaysia": [
        "Kuala Lumpur",
        "Penang",
        "Langkawi",
        "Malacca",
        "Cameron Highlands",
        "Taman Negara",
        "Borneo",
    ],
    "dubai": [
        "Dubai City",
        "Abu Dhabi",
        "Sharjah",
        "Ajman",
        "Fujairah",
        "Ras Al Khaimah",
        "Umm Al Quwain",
    ],
    "maldives": ["Male", "Hulhumale", "Maafushi", "Gulhi", "Thulusdhoo", "Dhiffushi", "Ukulhas"],
    "andaman": [
        "Port Blair",
        "Havelock Island",
        "Neil Island",
        "Baratang",
        "Ross Island",
        "Viper Island",
        "North Bay",
    ],
}

# Location labels that do not name a single filterable city
CITY_ALIASES = {"Private Resort Island": ["Resort Island"]}
CITY_EXPANSIONS = {"3 Different Resorts": ["Male", "Resort Island", "Multiple Atolls"]}


class UnknownDestinationError(KeyError):
    pass


class CityNotFoundError(KeyError):
    pass


def default_city_filters() -> dict[str, list[CityFilter]]:
    filters: dict[str, list[CityFilter]] = {}
    next_id = 1
    for destination, names in _DEFAULT_CITY_NAMES.items():
        filters[destination] = []
        for order, name in enumerate(names, start=1):
            filters[destination].append(CityFilter(id=next_id, name=name, order=order))
            next_id += 1
    return filters


class CityFilterRegistry:
    def __init__(self, initial: dict[str, list[CityFilter]] | None = None):
        self._filters = copy.deepcopy(initial) if initial is not None else default_city_filters()

    def _destination(self, destination: str) -> list[CityFilter]:
        if destination not in self._filters:
            raise UnknownDestinationError(destination)
        return self._filters[destination]

    def _index(self, destination: str, city_id: int) -> int:
        for index, city in enumerate(self._destination(destination)):
            if city.id == city_id:
                return index
        raise CityNotFoundError(city_id)

    def get_cities(self, destination: str) -> list[CityFilter]:
        return list(self._filters.get(destination, []))

    def get_all(self) -> dict[str, list[CityFilter]]:
        return {destination: list(cities) for destination, cities in self._filters.items()}

    def add_city(self, destination: str, name: str, order: int | None = None) -> CityFilter:
        cities = self._destination(destination)
        ids = [city.id for group in self._filters.values() for city in group]
        city = CityFilter(
            id=max(ids, default=0) + 1,
            name=name,
            order=order or len(cities) + 1,
        )
        cities.append(city)
        return city

    def update_city(self, destination: str, city_id: int, **updates) -> CityFilter:
        index = self._index(destination, city_id)
        changes = {key: value for key, value in updates.items() if value is not None}
        cities = self._filters[destination]
        cities[index] = cities[index].model_copy(update=changes)
        return cities[index]

    def delete_city(self, destination: str, city_id: int) -> CityFilter:
        index = self._index(destination, city_id)
        return self._filters[destination].pop(index)

    def toggle_city(self, destination: str, city_id: int) -> CityFilter:
        city = self._filters[destination][self._index(destination, city_id)]
        return self.update_city(destination, city_id, is_active=not city.is_active)

    def active_with_counts(self, destination: str, counts: Counter) -> list[CityFilter]:
        active = [city for city in self.get_cities(destination) if city.is_active]
        active.sort(key=lambda city: city.order)
        return [city.model_copy(update={"count": counts.get(city.name, 0)}) for city in active]


def count_cities(locations: Iterable[str]) -> Counter:
    """Count package locations per city; a location may list several cities."""
    counts: Counter = Counter()
    for location in locations:
        for city in re.split(r"[&,]", location):
            city = city.strip()
            if not city:
                continue
            for name in CITY_EXPANSIONS.get(city) or CITY_ALIASES.get(city) or [city]:
                counts[name] += 1
    return counts
