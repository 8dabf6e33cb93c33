"""Exchange endpoint paths and header names. Base URLs come from ExchangeConfig."""

# Futures API (reference price)
PATH_PRICE_TICKER = "/fapi/v1/ticker/price"

# Options API
PATH_OPTIONS_TICKER = "/eapi/v1/ticker"
PATH_OPTIONS_TICKER_24HR = "/eapi/v1/ticker/24hr"
PATH_INSTRUMENT_LISTING = "/eapi/v1/exchangeInfo"
PATH_DEPTH = "/eapi/v1/depth"
PATH_ORDER = "/eapi/v1/order"

# Signed-request headers
HEADER_API_KEY = "X-MBX-APIKEY"
HEADER_SIGNATURE = "signature"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
