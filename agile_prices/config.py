PRODUCT_CODE = "AGILE-24-04-03"            # Octopus Agile product
TARIFF_CODE = "E-1R-AGILE-24-04-03-D"      # single-rate electricity, region D

TARIFF_URL = (
    "https://api.octopus.energy/v1/products/{product}/electricity-tariffs/"
    "{tariff}/standard-unit-rates/"
).format(product=PRODUCT_CODE, tariff=TARIFF_CODE)

PAGE_SIZE = 96                  # half-hourly slots, two days' worth
REQUEST_TIMEOUT_SECONDS = 10

REFRESH_INTERVAL_SECONDS = 10   # how often the current slot is re-resolved
DISPLAY_TIMEZONE = "Europe/London"

SVT_RATE = 25.76  # p/kWh, standard variable tariff reference line

# Bar colours
CURRENT_COLOUR = "#3b82f6"
PAST_COLOUR = "grey"
PAST_NEGATIVE_COLOUR = "#86efac"
FUTURE_COLOUR = "black"
FUTURE_NEGATIVE_COLOUR = "#166534"
