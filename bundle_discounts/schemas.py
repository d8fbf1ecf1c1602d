from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for every document and payload: camelCase on the wire, snake_case in Python.
    Unknown keys are ignored so newer documents still load.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )


class DiscountClass(str, Enum):
    ORDER = "ORDER"
    PRODUCT = "PRODUCT"
    SHIPPING = "SHIPPING"


class DiscountMethod(str, Enum):
    FIXED_AMOUNT_OFF = "fixed_amount_off"
    PERCENTAGE_OFF = "percentage_off"
    FREE_SHIPPING = "free_shipping"


class ConditionType(str, Enum):
    EQUAL_TO = "equal_to"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_THAN_OR_EQUAL_TO = "greater_than_or_equal_to"
    LESS_THAN_OR_EQUAL_TO = "less_than_or_equal_to"


# Bundle documents

class BundleVariant(CamelModel):
    id: str
    title: Optional[str] = None
    price: Optional[str] = None


class BundleProduct(CamelModel):
    """
    A product eligible for a step. Documents may list bare product ids instead.
    """
    id: str
    title: Optional[str] = None
    variants: List[BundleVariant] = Field(default_factory=list)


class BundleCollection(CamelModel):
    id: str
    title: Optional[str] = None


class BundleStep(CamelModel):
    """
    One selection requirement of a bundle.

    max_quantity of 0 means unbounded. When both condition_type and
    condition_value are set the condition replaces the min/max check.
    """
    id: str
    name: str = ""
    products: List[BundleProduct] = Field(default_factory=list)
    collections: List[BundleCollection] = Field(default_factory=list)
    min_quantity: int = Field(ge=0)
    max_quantity: int = Field(default=0, ge=0)
    condition_type: Optional[ConditionType] = None
    condition_value: Optional[int] = None
    enabled: bool = True

    @field_validator("products", mode="before")
    @classmethod
    def _accept_bare_product_ids(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"id": p} if isinstance(p, str) else p for p in value]
        return value

    @field_validator("condition_type", mode="before")
    @classmethod
    def _blank_condition_is_unset(cls, value: Any) -> Any:
        return value or None

    @field_validator("enabled", mode="before")
    @classmethod
    def _null_means_enabled(cls, value: Any) -> Any:
        return True if value is None else value

    @property
    def product_ids(self) -> Set[str]:
        return {p.id for p in self.products}

    @property
    def has_condition(self) -> bool:
        return self.condition_type is not None and self.condition_value is not None


MAX_FIXED_AMOUNT_OFF = Decimal("1000000000")


class DiscountRule(CamelModel):
    """
    A quantity tier: once the matched quantity reaches minimum_quantity,
    this discount magnitude applies. fixed_amount_off is in the reference currency.
    """
    discount_on: str = "quantity"
    minimum_quantity: int = Field(ge=0)
    fixed_amount_off: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_FIXED_AMOUNT_OFF)
    percentage_off: Decimal = Field(default=Decimal("0"), ge=0, le=100)


class PricingPolicy(CamelModel):
    enable_discount: bool = False
    discount_method: DiscountMethod
    rules: List[DiscountRule] = Field(default_factory=list)


class BundleDefinition(CamelModel):
    """
    A merchant-configured bundle, as stored in a product's bundle document.
    """
    id: str
    name: str
    steps: List[BundleStep]
    pricing: Optional[PricingPolicy] = None

    @field_validator("steps", mode="before")
    @classmethod
    def _order_positional_steps(cls, value: Any) -> Any:
        # steps may be keyed by position: {"0": {...}, "1": {...}}
        if isinstance(value, dict):
            return [value[k] for k in sorted(value, key=lambda k: int(k))]
        return value

    @property
    def enabled_steps(self) -> List[BundleStep]:
        return [s for s in self.steps if s.enabled]


# Cart snapshot

class Money(CamelModel):
    amount: Decimal = Decimal("0")
    currency_code: Optional[str] = None


class LineCost(CamelModel):
    subtotal_amount: Optional[Money] = None
    total_amount: Optional[Money] = None


class Metafield(CamelModel):
    value: Optional[str] = None


class Product(CamelModel):
    id: str
    title: Optional[str] = None
    metafield: Optional[Metafield] = None


class Merchandise(CamelModel):
    typename: str = Field(default="ProductVariant", alias="__typename")
    id: Optional[str] = None
    product: Optional[Product] = None


class CartLine(CamelModel):
    id: str
    quantity: int = Field(ge=0)
    merchandise: Merchandise
    cost: Optional[LineCost] = None

    @property
    def product_id(self) -> Optional[str]:
        """Product identifier, only for product-variant merchandise."""
        if self.merchandise.typename != "ProductVariant" or not self.merchandise.product:
            return None
        return self.merchandise.product.id

    @property
    def bundle_document(self) -> Optional[str]:
        product = self.merchandise.product
        if self.product_id is None or not product.metafield:
            return None
        return product.metafield.value or None

    @property
    def line_amount(self) -> Decimal:
        if not self.cost:
            return Decimal("0")
        money = self.cost.subtotal_amount or self.cost.total_amount
        return money.amount if money else Decimal("0")


class DeliveryGroup(CamelModel):
    id: str


class CartCost(CamelModel):
    subtotal_amount: Optional[Money] = None


class Cart(CamelModel):
    lines: List[CartLine] = Field(default_factory=list)
    delivery_groups: List[DeliveryGroup] = Field(default_factory=list)
    cost: Optional[CartCost] = None

    def currency_code(self, default: str = "USD") -> str:
        subtotal = self.cost.subtotal_amount if self.cost else None
        if subtotal and subtotal.currency_code:
            return subtotal.currency_code
        return default


class DiscountInput(CamelModel):
    discount_classes: List[DiscountClass] = Field(default_factory=list)


class RunInput(CamelModel):
    """
    One evaluation request from the host: the cart and the active discount classes.
    """
    cart: Cart
    discount: DiscountInput = Field(default_factory=DiscountInput)


class BundleMatchResult(CamelModel):
    """
    Outcome of checking one bundle against a cart. Lives for one evaluation only.
    """
    bundle: BundleDefinition
    matching_lines: List[CartLine] = Field(default_factory=list)
    total_quantity: int = 0
    total_original_cost: Decimal = Decimal("0")
    meets_conditions: bool = False

    @property
    def matching_line_ids(self) -> Set[str]:
        return {line.id for line in self.matching_lines}


# Operations returned to the host

class OrderSubtotalTarget(CamelModel):
    excluded_cart_line_ids: List[str] = Field(default_factory=list)


class DeliveryGroupTarget(CamelModel):
    id: str


class DiscountTarget(CamelModel):
    order_subtotal: Optional[OrderSubtotalTarget] = None
    delivery_group: Optional[DeliveryGroupTarget] = None


class FixedAmountValue(CamelModel):
    amount: str


class PercentageValue(CamelModel):
    value: float


class DiscountValue(CamelModel):
    fixed_amount: Optional[FixedAmountValue] = None
    percentage: Optional[PercentageValue] = None


class DiscountCandidate(CamelModel):
    message: str
    targets: List[DiscountTarget]
    value: DiscountValue


class OrderDiscountsAdd(CamelModel):
    candidates: List[DiscountCandidate]
    selection_strategy: str = "FIRST"


class DeliveryDiscountsAdd(CamelModel):
    candidates: List[DiscountCandidate]
    selection_strategy: str = "ALL"


class DiscountOperation(CamelModel):
    """
    Either an order-subtotal or a delivery-group discount candidate.
    """
    order_discounts_add: Optional[OrderDiscountsAdd] = None
    delivery_discounts_add: Optional[DeliveryDiscountsAdd] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RunResult(CamelModel):
    operations: List[DiscountOperation] = Field(default_factory=list)
