# Billing state is stored on profiles; subscriptions themselves live in Stripe

"""
profiles (billing columns):
- plan: text (free | pro | band, default: free)
- stripe_customer_id: text (nullable, set on first checkout)
- stripe_subscription_id: text (nullable)
- subscription_status: text (nullable, mirrors the Stripe subscription status)
- subscription_period_end: timestamp (nullable)

Only the webhook handler (service-role client) changes plan and subscription
fields; checkout only stores the customer id.
"""
