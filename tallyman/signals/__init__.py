"""
Tallyman signals - public event API.

Emitted signals (dispatched on commit):
- visit_recorded: Emitted by LedgerService.record_visit()
- reward_redeemed: Emitted by LedgerService.redeem_reward()
- customer_registered: Emitted by services.customer.register()
"""

from django.dispatch import Signal

visit_recorded = Signal()  # sender=Visit, visit=Visit, balance=int
reward_redeemed = Signal()  # sender=Reward, reward=Reward, customer=Customer, transaction=Transaction
customer_registered = Signal()  # sender=Customer, customer=Customer
