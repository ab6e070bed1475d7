from ..extensions import db

UNITS = ("UN", "KG", "L", "M", "M2")


class Material(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(180), nullable=False, index=True)
    unit = db.Column(db.String(8), default="UN")  # UN|KG|L|M|M2
    cost_per_unit = db.Column(db.Numeric(12, 4), default=0)
    current_stock = db.Column(db.Numeric(12, 3), default=0)  # may go negative
    min_stock = db.Column(db.Numeric(12, 3), default=0)
    loss_percentage = db.Column(db.Numeric(6, 2), default=0)  # 0..100

    def __repr__(self):
        return f"<Material {self.name}>"


class Product(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(180), nullable=False, index=True)
    is_kit = db.Column(db.Boolean, default=False)
    selling_price = db.Column(db.Numeric(12, 2), default=0)
    labor_cost = db.Column(db.Numeric(12, 2), default=0)

    materials = db.relationship(
        "ProductMaterial",
        backref="product",
        cascade="all, delete-orphan",
        order_by="ProductMaterial.id",
    )

    def __repr__(self):
        return f"<Product {self.name}>"


class ProductMaterial(db.Model):
    """Bill-of-materials line: quantity of a material per unit of product."""

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.id"), nullable=False, index=True)
    # no FK: materials may be deleted while still referenced
    material_id = db.Column(db.Integer, nullable=False, index=True)
    quantity = db.Column(db.Numeric(12, 3), nullable=False, default=0)


class Marketplace(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    fixed_fee = db.Column(db.Numeric(12, 2), default=0)
    variable_fee_percent = db.Column(db.Numeric(6, 2), default=0)
    ads_fee_percent = db.Column(db.Numeric(6, 2), default=0)
    shipping_cost = db.Column(db.Numeric(12, 2), default=0)
    tax_percent = db.Column(db.Numeric(6, 2), default=0)
