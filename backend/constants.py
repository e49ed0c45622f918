ROLE_CUSTOMER = "customer"
ROLE_ADMIN = "admin"
ROLE_DRIVER = "driver"
ROLE_KITCHEN = "kitchen"
ALLOWED_ROLES = (ROLE_CUSTOMER, ROLE_ADMIN, ROLE_DRIVER, ROLE_KITCHEN)
STAFF_ROLES = (ROLE_ADMIN, ROLE_KITCHEN, ROLE_DRIVER)

DRIVER_AVAILABLE = "available"
DRIVER_BUSY = "busy"
DRIVER_OFFLINE = "offline"
DRIVER_STATUSES = (DRIVER_AVAILABLE, DRIVER_BUSY, DRIVER_OFFLINE)

ORDER_TYPE_COUNTER = "balcao"
ORDER_TYPE_PHONE = "telefone"

MANUAL_ORDER_ETA_MINUTES = 45
MAX_ITEM_QUANTITY = 50
TOTAL_TOLERANCE = 0.01

PLACEHOLDER_EMAIL_DOMAIN = "temp.williamdiskpizza.com"

PUBLIC_SETTING_KEYS = (
    "restaurant_name",
    "description",
    "restaurant_phone",
    "restaurant_address",
    "email",
    "website",
    "logo_url",
    "delivery_fee",
    "min_order_value",
    "delivery_time",
    "openingHours",
    "closingHours",
    "isOpen",
    "acceptOrders",
    "fastDeliveryEnabled",
    "fastDeliveryTitle",
    "fastDeliverySubtext",
    "freeDeliveryEnabled",
    "freeDeliveryTitle",
    "freeDeliverySubtext",
    "free_delivery_min",
)

DEFAULT_PUBLIC_SETTINGS = {
    "restaurant_name": "William Disk Pizza",
    "description": "A melhor pizza da cidade, feita com ingredientes frescos e muito amor!",
    "restaurant_phone": "(11) 99999-9999",
    "restaurant_address": "Rua das Pizzas, 123 - Centro",
    "email": "contato@williamdiskpizza.com",
    "website": "www.williamdiskpizza.com",
    "delivery_fee": 5.0,
    "min_order_value": 20.0,
    "delivery_time": 45.0,
    "openingHours": "18:00",
    "closingHours": "23:00",
    "isOpen": True,
    "acceptOrders": True,
    "fastDeliveryEnabled": True,
    "fastDeliveryTitle": "Super Rápido",
    "fastDeliverySubtext": "Entrega expressa em até 30 minutos ou sua pizza é grátis",
    "freeDeliveryEnabled": True,
    "freeDeliveryTitle": "Frete Grátis",
    "freeDeliverySubtext": "Entrega gratuita para pedidos acima de R$ 50,00",
    "free_delivery_min": 50.0,
}

ABOUT_CONTENT_KEY = "about_content"
ALLOW_ADMIN_REGISTRATION_KEY = "allowAdminRegistration"

ACCESS_TOKEN_COOKIE = "access-token"
REFRESH_TOKEN_COOKIE = "refresh-token"
ACCESS_TOKEN_MAX_AGE = 60 * 60 * 24 * 7
REFRESH_TOKEN_MAX_AGE = 60 * 60 * 24 * 30

PASSWORD_SPECIAL_CHARS = '!@#$%^&*(),.?":{}|<>'
COMMON_PASSWORDS = frozenset(
    {
        "123456",
        "password",
        "123456789",
        "12345678",
        "12345",
        "1234567",
        "1234567890",
        "qwerty",
        "abc123",
        "password123",
        "admin",
        "letmein",
        "welcome",
        "monkey",
        "1234",
    }
)
