"""Product management — commands and handlers for sellers and admins."""

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.catalogue.category.category import Category
from marketplace.catalogue.product.product import Product
from marketplace.domain import marketplace, logger
from marketplace.shared.errors import load
from marketplace.shared.policy import Action, Actor, authorize


@marketplace.command(part_of="Product")
class CreateProduct:
    name = String(required=True, max_length=200)
    description = Text()
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    category_id = Identifier()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@marketplace.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@marketplace.command(part_of="Product")
class DeactivateProduct:
    product_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@marketplace.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        actor = Actor(user_id=str(command.actor_id), role=command.actor_role)
        authorize(actor, Action.SELL_PRODUCT, message="Only sellers can list products")

        if command.category_id:
            load(current_domain.repository_for(Category), command.category_id, "Category")

        product = Product.create(
            name=command.name,
            price=command.price,
            seller_id=actor.user_id,
            stock=command.stock or 0,
            description=command.description,
            category_id=command.category_id,
        )
        current_domain.repository_for(Product).add(product)

        logger.info("product_created", product_id=str(product.id), seller_id=actor.user_id)
        return str(product.id)

    @handle(RestockProduct)
    def restock_product(self, command):
        repo = current_domain.repository_for(Product)
        product = load(repo, command.product_id, "Product")
        actor = Actor(user_id=str(command.actor_id), role=command.actor_role)
        authorize(actor, Action.MANAGE_PRODUCT, owner_id=product.seller_id, message="Product does not belong to seller")

        product.restock(command.quantity)
        repo.add(product)

    @handle(DeactivateProduct)
    def deactivate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = load(repo, command.product_id, "Product")
        actor = Actor(user_id=str(command.actor_id), role=command.actor_role)
        authorize(actor, Action.MANAGE_PRODUCT, owner_id=product.seller_id, message="Product does not belong to seller")

        product.deactivate()
        repo.add(product)
