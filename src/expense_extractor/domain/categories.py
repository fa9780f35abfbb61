"""Spending categories and the keyword matcher that guesses them from text."""

from collections.abc import Iterator

from expense_extractor.domain.amounts import normalize_text
from expense_extractor.models import OTHER_CATEGORY_ID, OTHER_CATEGORY_NAME, Category

# (id, display name, keywords). Keyword matching walks this table top to
# bottom, so earlier rows win when keywords overlap ("điện thoại" is
# electronics, not mobile-phone; "nước" is coffee-tea, not water).
CATALOG: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("groceries", "Groceries", ("chợ", "siêu thị", "rau", "thịt", "cá", "thực phẩm", "đồ ăn")),
    ("dining-out", "Dining Out", ("nhà hàng", "quán ăn", "ăn ngoài", "buffet", "cơm", "phở", "bún")),
    ("coffee-tea", "Coffee & Tea", ("cà phê", "cafe", "trà", "sinh tố", "nước")),
    ("public-transit", "Public Transit", ("xe buýt", "xe bus", "tàu", "metro", "grab bike", "xe ôm")),
    ("taxi-rideshare", "Taxi & Rideshare", ("grab", "taxi", "uber", "gojek", "be")),
    ("fuel", "Fuel", ("xăng", "dầu")),
    ("parking", "Parking", ("đậu xe", "gửi xe", "giữ xe")),
    ("clothing", "Clothing", ("quần áo", "áo", "quần", "giày", "dép", "thời trang")),
    ("electronics", "Electronics", ("điện thoại", "máy tính", "laptop", "tai nghe", "sạc", "điện tử")),
    ("home-furniture", "Home & Furniture", ("nội thất", "đồ gia dụng", "nhà cửa")),
    ("movies-streaming", "Movies & Streaming", ("phim", "rạp", "netflix", "xem phim")),
    ("gaming", "Gaming", ("game", "trò chơi")),
    ("gym-fitness", "Gym & Fitness", ("gym", "thể thao", "tập", "yoga")),
    ("electricity", "Electricity", ("điện", "tiền điện")),
    ("water", "Water", ("nước", "tiền nước")),
    ("internet", "Internet", ("internet", "mạng", "wifi")),
    ("mobile-phone", "Mobile Phone", ("điện thoại", "cước", "sim")),
    ("rent", "Rent", ("thuê nhà", "tiền nhà", "tiền trọ")),
    ("doctor-medical", "Doctor & Medical", ("bác sĩ", "khám", "bệnh viện", "y tế")),
    ("pharmacy", "Pharmacy", ("thuốc", "nhà thuốc")),
    ("dental", "Dental", ("nha khoa", "răng")),
    ("books", "Books", ("sách", "truyện")),
    ("online-courses", "Online Courses", ("khóa học", "học")),
    ("tuition", "Tuition", ("học phí", "học")),
    ("flight", "Flight", ("máy bay", "vé máy bay")),
    ("hotel", "Hotel", ("khách sạn", "homestay", "nghỉ")),
    ("haircut-salon", "Haircut & Salon", ("cắt tóc", "salon", "gội đầu")),
    ("skincare-cosmetics", "Skincare & Cosmetics", ("mỹ phẩm", "son", "kem", "skincare")),
    ("laundry", "Laundry", ("giặt", "giặt ủi")),
    ("pet-care", "Pet Care", ("thú cưng", "chó", "mèo")),
    ("gifts-donations", "Gifts & Donations", ("quà", "tặng", "từ thiện")),
    ("subscriptions", "Subscriptions", ("đăng ký", "subscription", "gói")),
    ("insurance", "Insurance", ()),
    (OTHER_CATEGORY_ID, OTHER_CATEGORY_NAME, ()),
)


class CategoryRegistry:
    """Ordered, read-only collection of categories keyed by id."""

    def __init__(self, categories: list[Category] | tuple[Category, ...]):
        self._categories = tuple(categories)
        self._by_id: dict[str, Category] = {}
        for category in self._categories:
            if category.id in self._by_id:
                raise ValueError(f"Duplicate category id: {category.id}")
            self._by_id[category.id] = category

    @classmethod
    def from_catalog(
        cls, catalog: tuple[tuple[str, str, tuple[str, ...]], ...] = CATALOG
    ) -> "CategoryRegistry":
        return cls([
            Category(id=cat_id, name=name, keywords=tuple(normalize_text(k) for k in keywords))
            for cat_id, name, keywords in catalog
        ])

    def get(self, category_id: str) -> Category | None:
        return self._by_id.get(category_id)

    def all(self) -> tuple[Category, ...]:
        return self._categories

    def __iter__(self) -> Iterator[Category]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._by_id


class CategoryMatcher:
    def __init__(self, registry: CategoryRegistry):
        self.registry = registry

    def find_category(self, label: str) -> Category | None:
        """Resolve a category id, display name or free text to a category.

        Exact id/name matches win. Otherwise the first category (in
        catalog order) with a keyword contained in the text is returned.
        """
        normalized = normalize_text(label).lower().strip()
        if not normalized:
            return None

        # 1. Exact match
        for category in self.registry:
            if normalized == category.id or normalized == category.name.lower():
                return category

        # 2. Keyword match
        for category in self.registry:
            if any(keyword in normalized for keyword in category.keywords):
                return category

        return None


DEFAULT_REGISTRY = CategoryRegistry.from_catalog()
DEFAULT_MATCHER = CategoryMatcher(DEFAULT_REGISTRY)


def find_category(label: str) -> Category | None:
    return DEFAULT_MATCHER.find_category(label)
