from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from constants import ALLOWED_ROLES, DRIVER_STATUSES, ROLE_CUSTOMER
from validators import validate_email, validate_phone, validate_state, validate_zip_code


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    service: str
    status: str


# Catalog


class ProductOption(BaseModel):
    name: str
    price: float = Field(..., ge=0)


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str = ""
    price: float = Field(..., ge=0)
    image: str = ""
    category_id: str = Field(..., min_length=1)
    available: bool = True
    show_image: bool = True
    product_number: Optional[int] = None
    sizes: List[ProductOption] = []
    toppings: List[ProductOption] = []


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    image: Optional[str] = None
    category_id: Optional[str] = None
    available: Optional[bool] = None
    show_image: Optional[bool] = None
    product_number: Optional[int] = None
    sizes: Optional[List[ProductOption]] = None
    toppings: Optional[List[ProductOption]] = None


class ProductResponse(BaseModel):
    id: str
    name: str
    description: str = ""
    price: float
    image: str = ""
    category_id: Optional[str] = None
    available: bool = True
    show_image: bool = True
    product_number: Optional[int] = None
    sizes: List[ProductOption] = []
    toppings: List[ProductOption] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    description: Optional[str] = None
    image: Optional[str] = None
    sort_order: Optional[int] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=80)
    description: Optional[str] = None
    image: Optional[str] = None
    sort_order: Optional[int] = None
    active: Optional[bool] = None


class CategoryResponse(BaseModel):
    id: str
    name: str
    description: str = ""
    image: str = ""
    sort_order: int = 0
    active: bool = True


class CategoryListResponse(BaseModel):
    categories: List[CategoryResponse]


class CategoryOrderItem(BaseModel):
    id: str
    sort_order: int


class CategoryOrderRequest(BaseModel):
    category_orders: List[CategoryOrderItem]


# Orders


class HalfAndHalfPart(BaseModel):
    product_id: str
    product_name: str
    toppings: List[str] = []


class HalfAndHalf(BaseModel):
    first_half: HalfAndHalfPart
    second_half: HalfAndHalfPart


class OrderItemCreate(BaseModel):
    product_id: str = Field(..., min_length=1)
    name: Optional[str] = None
    quantity: int = Field(..., ge=1, le=50)
    unit_price: float = Field(..., gt=0)
    size: Optional[str] = None
    toppings: List[str] = []
    special_instructions: Optional[str] = Field(default=None, max_length=500)
    half_and_half: Optional[HalfAndHalf] = None


class OrderCreate(BaseModel):
    customer_name: str = Field(..., min_length=2, max_length=100)
    customer_phone: str
    customer_email: Optional[str] = None
    delivery_address: str = Field(..., min_length=10, max_length=500)
    payment_method: str = Field(..., min_length=1, max_length=20)
    special_instructions: Optional[str] = Field(default=None, max_length=500)
    items: List[OrderItemCreate] = Field(..., min_length=1)
    total_amount: float = Field(..., ge=0)

    @field_validator("customer_phone")
    @classmethod
    def _check_phone(cls, value: str) -> str:
        return validate_phone(value)

    @field_validator("customer_email")
    @classmethod
    def _check_email(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return validate_email(value)


class OrderCreated(BaseModel):
    id: str
    status: str
    total_amount: float
    delivery_fee: float = 0.0
    created_at: Optional[datetime] = None


class OrderCreateResponse(BaseModel):
    success: bool
    order: OrderCreated


class OrderItemView(BaseModel):
    id: Optional[str] = None
    product_id: Optional[str] = None
    name: str = "Produto"
    quantity: int
    unit_price: Optional[float] = None
    total_price: Optional[float] = None
    size: Optional[str] = None
    toppings: Any = None
    special_instructions: Optional[str] = None
    half_and_half: Any = None


class OrderCustomer(BaseModel):
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None


class OrderView(BaseModel):
    id: str
    status: str
    user_id: Optional[str] = None
    driver_id: Optional[str] = None
    total: Optional[float] = None
    subtotal: Optional[float] = None
    delivery_fee: Optional[float] = None
    discount: Optional[float] = None
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    customer_name: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_phone: Optional[str] = None
    delivery_instructions: Optional[str] = None
    estimated_delivery_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    items: List[OrderItemView] = []
    customer: Optional[OrderCustomer] = None


class OrderListResponse(BaseModel):
    orders: List[OrderView]


class OrderUpdate(BaseModel):
    status: Optional[str] = None
    delivery_instructions: Optional[str] = Field(default=None, max_length=500)
    estimated_delivery_time: Optional[datetime] = None


class OrderStatusUpdate(BaseModel):
    status: str
    notes: Optional[str] = Field(default=None, max_length=500)


class OrderCancelRequest(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=500)


class OrderMutationResponse(BaseModel):
    message: str
    order: OrderView


class StatusHistoryEntry(BaseModel):
    id: Optional[str] = None
    order_id: str
    old_status: Optional[str] = None
    new_status: str
    notes: Optional[str] = None
    changed_at: Optional[datetime] = None


class StatusHistoryResponse(BaseModel):
    history: List[StatusHistoryEntry]


class ManualOrderItem(BaseModel):
    product_id: Optional[str] = None
    id: Optional[str] = None
    name: str = ""
    quantity: int = Field(default=1, ge=1, le=50)
    price: Optional[float] = None
    unit_price: Optional[float] = None
    size: Optional[str] = None
    toppings: List[str] = []
    notes: Optional[str] = None
    half_and_half: Optional[HalfAndHalf] = None


class ManualOrderCreate(BaseModel):
    customer_id: str
    name: str
    phone: str
    items: List[ManualOrderItem] = []
    total: float = 0.0
    subtotal: Optional[float] = None
    delivery_fee: float = 0.0
    order_type: Literal["balcao", "telefone"] = "balcao"
    payment_method: str = "PIX"
    notes: str = ""
    delivery_address: str = ""


class ManualOrderResponse(BaseModel):
    id: str
    status: str
    total: float
    order_type: str
    customer_name: str
    customer_phone: str
    customer_id: str
    delivery_address: str
    created_at: Optional[datetime] = None
    message: str


class AssignDriverRequest(BaseModel):
    driver_id: str = Field(..., min_length=1)


class AssignDriverResponse(BaseModel):
    message: str
    order: Dict[str, Any]
    driver: Optional[Dict[str, Any]] = None


# Drivers


class DriverCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: str
    phone: str = Field(..., min_length=1)
    vehicle_type: str = Field(..., min_length=1)
    vehicle_plate: Optional[str] = None
    current_location: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        return validate_email(value)


class DriverUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    vehicle_type: Optional[str] = None
    vehicle_plate: Optional[str] = None
    current_location: Optional[str] = None
    status: Optional[str] = None

    @field_validator("status")
    @classmethod
    def _check_status(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in DRIVER_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(DRIVER_STATUSES)}")
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: Optional[str]) -> Optional[str]:
        return validate_email(value) if value is not None else None


class DriverView(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    vehicle_type: Optional[str] = None
    vehicle_plate: Optional[str] = None
    status: str
    current_location: Optional[str] = None
    total_deliveries: int = 0
    average_rating: float = 0.0
    average_delivery_time: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_active_at: Optional[datetime] = None
    current_orders: List[str] = []


class DriverStatistics(BaseModel):
    total: int
    available: int
    busy: int
    offline: int
    average_delivery_time: int


class DriverListResponse(BaseModel):
    drivers: List[DriverView]
    statistics: DriverStatistics


class DriverResponse(BaseModel):
    driver: DriverView
    message: Optional[str] = None


class DriverDeleteResponse(BaseModel):
    message: str
    action: Literal["soft_delete", "delete"]
    total_orders: int = 0


# Addresses and customers


class AddressInput(BaseModel):
    user_id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=60)
    street: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1)
    complement: Optional[str] = None
    neighborhood: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str
    zip_code: str
    is_default: bool = False

    @field_validator("zip_code")
    @classmethod
    def _check_zip(cls, value: str) -> str:
        return validate_zip_code(value)

    @field_validator("state")
    @classmethod
    def _check_state(cls, value: str) -> str:
        return validate_state(value)


class AddressDefaultUpdate(BaseModel):
    is_default: bool


class AddressView(BaseModel):
    id: str
    user_id: Optional[str] = None
    name: str = "Endereço"
    street: str = ""
    number: str = ""
    complement: Optional[str] = None
    neighborhood: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AddressResponse(BaseModel):
    address: AddressView


class AddressListResponse(BaseModel):
    addresses: List[AddressView]


class CepLookupResponse(BaseModel):
    zip_code: str
    street: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""


class CustomerSummary(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    address: str
    street: str = ""
    number: str = ""
    complement: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    created_at: Optional[datetime] = None
    last_order_at: Optional[datetime] = None
    total_orders: int = 0
    total_spent: float = 0.0
    status: Literal["vip", "active", "inactive"]
    favorite_items: List[str] = []


class CustomerListResponse(BaseModel):
    customers: List[CustomerSummary]
    total: int


class CustomerSearchResult(BaseModel):
    id: str
    name: str
    phone: str = ""
    email: str = ""
    primary_address: Optional[AddressView] = None
    total_orders: int = 0
    created_at: Optional[datetime] = None


class CustomerSearchResponse(BaseModel):
    customers: List[CustomerSearchResult]


class CustomerAddressInput(BaseModel):
    street: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1)
    complement: Optional[str] = None
    neighborhood: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str
    zip_code: str

    @field_validator("zip_code")
    @classmethod
    def _check_zip(cls, value: str) -> str:
        return validate_zip_code(value)

    @field_validator("state")
    @classmethod
    def _check_state(cls, value: str) -> str:
        return validate_state(value)


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    phone: str
    email: Optional[str] = None
    address: Optional[CustomerAddressInput] = None

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: str) -> str:
        return validate_phone(value)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: Optional[str]) -> Optional[str]:
        if not value or not value.strip():
            return None
        return validate_email(value)


class CustomerCreateResponse(BaseModel):
    message: str
    customer: CustomerSearchResult


# Settings and content


class PublicSettingsResponse(BaseModel):
    settings: Dict[str, Any]
    success: bool = True


class AdminSettingsResponse(BaseModel):
    settings: Dict[str, Any]


class ContactRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str
    subject: Optional[str] = Field(default=None, max_length=150)
    message: str = Field(..., min_length=1, max_length=5000)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        return validate_email(value)


class ContactResponse(BaseModel):
    message: str
    contact: Dict[str, Any]


class UploadResponse(BaseModel):
    url: str
    path: str


# Auth, admin account and users


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    phone: Optional[str] = None
    created_at: Optional[datetime] = None


class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)
    required_role: Optional[str] = None


class LoginResponse(BaseModel):
    success: bool
    user: SessionUser
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None


class RegisterRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., min_length=2, max_length=100)
    phone: str
    role: str = ROLE_CUSTOMER

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        return validate_email(value)

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: str) -> str:
        return validate_phone(value)

    @field_validator("role")
    @classmethod
    def _check_role(cls, value: str) -> str:
        if value not in ALLOWED_ROLES:
            raise ValueError("Invalid user role")
        return value


class RegisterResponse(BaseModel):
    message: str
    user: SessionUser


class MeResponse(BaseModel):
    user: SessionUser


class LogoutResponse(BaseModel):
    success: bool
    message: str


class AdminRegisterRequest(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: str
    password: str = Field(..., min_length=6)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        return validate_email(value)


class AdminProfile(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AdminProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = None


class AdminProfileResponse(BaseModel):
    profile: AdminProfile
    message: Optional[str] = None


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class UserView(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    email_verified: Optional[bool] = None
    profile_completed: Optional[bool] = None


class UserResponse(BaseModel):
    user: UserView
    message: Optional[str] = None


class UserUpdate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: str
    phone: str

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if len(stripped) < 2:
            raise ValueError("Name must have at least 2 characters")
        return stripped

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        return validate_email(value)

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: str) -> str:
        return validate_phone(value)


# Reports


class DailySales(BaseModel):
    date: date
    orders: int
    revenue: float


class TopProduct(BaseModel):
    name: str
    quantity: int
    revenue: float


class DriverPerformance(BaseModel):
    driver_id: str
    name: Optional[str] = None
    deliveries: int
    average_minutes: Optional[float] = None
    p90_minutes: Optional[float] = None


class ReportSummary(BaseModel):
    days: int
    since: datetime
    total_orders: int
    revenue: float
    average_ticket: float
    orders_by_status: Dict[str, int]
    daily_sales: List[DailySales]
    top_products: List[TopProduct]
    delivery_performance: List[DriverPerformance]
