import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from rental_pricing.engine import PricingEngine, DiscountRule
from rental_pricing.services.rules_service import RulesService

def debug(csv_path=None):
    engine = PricingEngine()
    service = RulesService()

    if csv_path:
        print(f"Loading rules from {csv_path}")
        service.load_csv(Path(csv_path))
        rules = service.list_rules()
    else:
        rules = [
            DiscountRule(id="r3", car_id="demo", min_days=3, discount_type="percentage", discount_value=5),
            DiscountRule(id="r7", car_id="demo", min_days=7, discount_type="percentage", discount_value=10),
            DiscountRule(id="r14", car_id="demo", min_days=14, discount_type="fixed", discount_value=3000),
            DiscountRule(id="r30", car_id="demo", min_days=30, discount_type="percentage", discount_value=25, is_active=False),
        ]

    print("Loaded Rules:")
    for rule in rules:
        status = "active" if rule.is_active else "inactive"
        print(f"  {rule.id}: {engine.format_discount_description(rule)} ({status})")

    # Test Case: 10 days at 1,500/day
    print("\n--- Testing 10-day rental at 1500/day ---")
    breakdown = engine.compute(1500, 10, rules)
    print(breakdown.get_trace_text())
    print(breakdown.to_dict())

    print("\n--- Schedule (1-31 days) ---")
    print(engine.price_schedule(1500, rules, max_days=31))

if __name__ == "__main__":
    debug(sys.argv[1] if len(sys.argv) > 1 else None)
