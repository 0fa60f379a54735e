"""Willys web shop endpoints, relative to the base URL."""

LOGIN = "/login"
CSRF_TOKEN = "/axfood/rest/csrf-token"
CUSTOMER = "/axfood/rest/customer"
CART = "/axfood/rest/cart"
CART_ADD_PRODUCTS = "/axfood/rest/cart/addProducts"
CART_DELIVERY_MODE = "/axfood/rest/cart/delivery-mode/homeDelivery"
CART_DELIVERY_ADDRESS = "/axfood/rest/cart/delivery-address"
CART_POSTAL_CODE = "/axfood/rest/cart/postal-code"
SEARCH = "/search"
SLOT_HOME_DELIVERY = "/axfood/rest/slot/homeDelivery"
SLOT_IN_CART = "/axfood/rest/slot/slotInCart"
SHIPPING_DELIVERY = "/axfood/rest/shipping/delivery"
CHECKOUT = "/kassa"
