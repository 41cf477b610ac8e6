"""Static option tables shared by the search form and the refinement engine."""

from __future__ import annotations

CATEGORIES = ["Any", "Cooking", "Refrigeration", "Dishwashing", "Laundry", "Preparation"]
CONDITIONS = ["Any", "New", "Used", "Refurbished"]
COUNTRIES = [
    "Saudi Arabia",
    "UAE",
    "Bahrain",
    "Kuwait",
    "Oman",
    "Qatar",
    "China",
    "Germany",
    "France",
    "Italy",
    "Spain",
    "UK",
    "USA",
    "GCC",
    "Europe",
    "Asia",
]
CURRENCIES = ["USD", "EUR", "GBP", "AED", "SAR"]
ITEMS_PER_PAGE_OPTIONS = [10, 20, 50, 100]

# Value of one unit of each currency in USD. Fixed table, never fetched.
CURRENCY_RATES_TO_USD: dict[str, float] = {
    "USD": 1.0,
    "EUR": 1.08,
    "GBP": 1.27,
    "AED": 0.27,
    "SAR": 0.27,
}

ALL = "All"
