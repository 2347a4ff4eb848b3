"""Internal constants shared across the library."""

USER_AGENT = "Mozilla/5.0 (compatible; pyfuelprices/1.0)"
DEFAULT_CACHE_KEY = "fuel:prices"

COLLECTAPI_BASE_URL = "https://api.collectapi.com/gasPrice"
GAS_PRICE_API_BASE_URL = "https://gas-price.p.rapidapi.com"
GAS_PRICE_API_HOST = "gas-price.p.rapidapi.com"

# Provinces of Turkey, spelled as the aggregator APIs expect them.
TURKEY_CITIES: tuple[str, ...] = (
    "Adana", "Adıyaman", "Afyonkarahisar", "Ağrı", "Amasya", "Ankara", "Antalya", "Artvin",
    "Aydın", "Balıkesir", "Bilecik", "Bingöl", "Bitlis", "Bolu", "Burdur", "Bursa",
    "Çanakkale", "Çankırı", "Çorum", "Denizli", "Diyarbakır", "Edirne", "Elazığ", "Erzincan",
    "Erzurum", "Eskişehir", "Gaziantep", "Giresun", "Gümüşhane", "Hakkari", "Hatay", "Isparta",
    "Mersin", "İstanbul", "İzmir", "Kars", "Kastamonu", "Kayseri", "Kırklareli", "Kırşehir",
    "Kocaeli", "Konya", "Kütahya", "Malatya", "Manisa", "Kahramanmaraş", "Mardin", "Muğla",
    "Muş", "Nevşehir", "Niğde", "Ordu", "Rize", "Sakarya", "Samsun", "Siirt", "Sinop",
    "Sivas", "Tekirdağ", "Tokat", "Trabzon", "Tunceli", "Şanlıurfa", "Uşak", "Van",
    "Yozgat", "Zonguldak", "Aksaray", "Bayburt", "Karaman", "Kırıkkale", "Batman", "Şırnak",
    "Bartın", "Ardahan", "Iğdır", "Yalova", "Karabük", "Kilis", "Osmaniye", "Düzce",
)

# Uppercase Turkish letters (and the circumflexed vowels of loanwords) folded
# to ASCII. Applied after str.upper(), which already maps "ı" and "i" to "I".
DIACRITIC_TABLE: dict[str, str] = {
    "İ": "I",
    "Ğ": "G",
    "Ü": "U",
    "Ş": "S",
    "Ö": "O",
    "Ç": "C",
    "Â": "A",
    "Î": "I",
    "Û": "U",
}

# Colloquial or historical province names -> canonical key.
LOCATION_ALIASES: dict[str, str] = {
    "ICEL": "MERSIN",
    "AFYON": "AFYONKARAHISAR",
    "MARAS": "KAHRAMANMARAS",
    "URFA": "SANLIURFA",
    "ANTEP": "GAZIANTEP",
    "IZMIT": "KOCAELI",
    "ADAPAZARI": "SAKARYA",
    "ANTAKYA": "HATAY",
    "DERSIM": "TUNCELI",
}
