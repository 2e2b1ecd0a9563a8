"""
ASG Target 演示

连接真实的 AWS Auto Scaling Group，读取状态并按给定目标数扩缩容。

    python examples/asg_target_demo.py --asg-name my-workers --count 3 --region eu-west-1

缩容时使用一个不做迁移的 drainer（按实例 ID 排序挑选），仅适用于无状态 worker。
"""

import argparse
from typing import Sequence

import ray

from asgtarget.core.controllers import RayTarget
from asgtarget.core.drain import DrainRequest, NodeDrainer


class StatelessDrainer(NodeDrainer):
    """直接挑选实例，不做 workload 迁移。"""

    def select_and_drain(self, request: DrainRequest) -> Sequence[str]:
        selected = sorted(request.eligible_instance_ids)[: request.count]
        print(f"   🔻 选中实例: {', '.join(selected)} (deadline={request.deadline:.0f}s)")
        return selected


def main():
    parser = argparse.ArgumentParser(description="ASG target demo")
    parser.add_argument("--asg-name", required=True)
    parser.add_argument("--count", type=int, required=True)
    parser.add_argument("--region", default="us-east-1")
    parser.add_argument("--drain-deadline", default="5m")
    args = parser.parse_args()

    print("=" * 60)
    print("ASG Target 演示")
    print("=" * 60)

    ray.init(ignore_reinit_error=True)
    target = RayTarget(
        "asg-target-demo",
        plugin_config={"region": args.region},
        drainer=StatelessDrainer(),
    )
    call_config = {"asg_name": args.asg_name, "drain_deadline": args.drain_deadline}

    try:
        print("\n1️⃣  当前状态...")
        status = target.status(call_config)
        if not status["success"]:
            print(f"   ❌ 获取状态失败: {status['error']}")
            return
        print(f"   ready={status['status']['ready']} count={status['status']['count']}")

        print(f"\n2️⃣  调整到 {args.count} 台...")
        result = target.reconcile(args.count, call_config)
        if result.get("skipped"):
            print("   ⏸️  ASG 尚未就绪，跳过本轮")
        elif result.get("noop"):
            print(f"   ✅ {result['error']}")
        elif result["success"]:
            print(f"   ✅ {result['result']['message']}")
        else:
            print(f"   ❌ {result['error']}")

        print("\n3️⃣  最新状态...")
        print(f"   {target.status(call_config)}")
    finally:
        target.shutdown()
        ray.shutdown()


if __name__ == "__main__":
    main()
