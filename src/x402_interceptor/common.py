x402_VERSION = 1

X_PAYMENT_HEADER = "X-PAYMENT"
X_PAYMENT_RESPONSE_HEADER = "X-PAYMENT-RESPONSE"
EXPOSE_HEADERS_HEADER = "Access-Control-Expose-Headers"

# Keys under which transports attach payment state to requests and responses
RETRY_EXTENSION = "x402_is_retry"
RECEIPT_ATTRIBUTE = "x402_payment_receipt"
