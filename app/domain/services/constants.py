# Constants for the listing pipeline.

# Sort modes (public vocabulary, same tokens the upstream dashboard uses)
SORT_BEST_SELLERS = "Ranksales"
SORT_PRICE_ASC = "Rankprice_asc"
SORT_PRICE_DESC = "Rankprice_desc"
SORT_NEWEST = "Ranknew"

# Sort mode -> upstream OrderBy expression
ORDER_BY = {
    SORT_BEST_SELLERS: "Volume:Desc",
    SORT_PRICE_ASC: "Price:Asc",
    SORT_PRICE_DESC: "Price:Desc",
    SORT_NEWEST: "CreatedTime:Desc",
}
DEFAULT_ORDER_BY = "Volume:Desc"

# Fetch cap multiplier: fetch 1.5x the page so the best-sellers re-sort has headroom
FETCH_OVERSAMPLE = 1.5

# Upstream application-level success codes
OK_ERROR_CODES = {0, "0", "Ok"}

# Normalization defaults
PLACEHOLDER_TITLE = "Sin título"

# Standard air-freight divisor (cm^3 per kg)
VOLUMETRIC_DIVISOR = 6000
MIN_DIMENSION_CM = 3.0
