"""摄像头番茄钟入口文件（桌面窗口模式）"""

import argparse
import json
import os
import time

import cv2

from controller.focus_controller import FocusController

# 默认配置
_DEFAULTS = {
    "work_duration": 25 * 60,
    "break_duration": 5 * 60,
    "face_absent_threshold_ms": 5000,
    "thumbs_up_hold_ms": 1500,
    "three_fingers_hold_ms": 1200,
    "time_overlay_ms": 5000,
    "weather_overlay_ms": 7000,
    "time_repeat_cooldown_ms": 5000,
    "camera_index": 0,
    "camera_width": 640,
    "camera_height": 480,
    "hand_detection_confidence": 0.7,
    "face_detection_confidence": 0.5,
    "weather_api_key": None,
    "weather_units": "metric",
    "request_timeout": 5.0,
}

# 窗口按键 -> 控制动作
_KEY_ACTIONS = {
    ord("s"): "start_pomodoro",
    ord("p"): "pause_pomodoro",
    ord("r"): "resume_pomodoro",
    ord("x"): "reset_pomodoro",
    ord("m"): "toggle_mute",
}

_WINDOW_TITLE = "Focus Timer"


def load_config(config_path=None):
    """从 JSON 配置文件加载参数，缺失字段使用默认值。"""
    config = dict(_DEFAULTS)

    if config_path is not None:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            print(f"警告: 配置文件不存在 {config_path}，使用默认配置")
            data = {}
        except json.JSONDecodeError:
            print(f"警告: 配置文件格式错误 {config_path}，使用默认配置")
            data = {}

        # 用配置文件中的值覆盖默认值
        for key in _DEFAULTS:
            if key in data and data[key] is not None:
                config[key] = data[key]

    if not config["weather_api_key"]:
        config["weather_api_key"] = os.environ.get("OPENWEATHER_API_KEY")

    return config


class FocusApp:
    """桌面模式：OpenCV 窗口显示渲染画面，键盘控制番茄钟。"""

    def __init__(self, config, controller=None):
        self.config = config
        self.controller = controller or FocusController(config)

    def run(self, show_window=True):
        """启动主循环，直到按 q 或 Ctrl+C。"""
        self.controller.start()
        try:
            if show_window:
                self._window_loop()
            else:
                while True:
                    time.sleep(1.0)
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()

    def _window_loop(self):
        """窗口显示主循环。"""
        while True:
            frame = self.controller.latest_frame()
            if frame is not None:
                cv2.imshow(_WINDOW_TITLE, frame)

            key = cv2.waitKey(30) & 0xFF
            if key == ord("q"):
                break
            self.handle_key(key)

    def handle_key(self, key):
        """把按键翻译成控制器调用，返回是否识别了该按键。"""
        if key == ord("d"):
            if self.controller.board.detection_paused:
                self.controller.enable_detection()
            else:
                self.controller.pause_detection()
            return True

        action = _KEY_ACTIONS.get(key)
        if action is None:
            return False
        getattr(self.controller, action)()
        return True

    def stop(self):
        """关闭控制器和所有窗口。"""
        self.controller.shutdown()
        cv2.destroyAllWindows()


def main():
    parser = argparse.ArgumentParser(description="摄像头番茄钟")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON 配置文件路径",
    )
    parser.add_argument(
        "--camera",
        type=int,
        default=None,
        help="摄像头编号（覆盖配置文件）",
    )
    parser.add_argument(
        "--no-window",
        action="store_true",
        help="不显示 OpenCV 窗口，只运行检测与计时",
    )
    args = parser.parse_args()

    config = load_config(args.config)
    if args.camera is not None:
        config["camera_index"] = args.camera

    app = FocusApp(config)
    app.run(show_window=not args.no_window)


if __name__ == "__main__":
    main()
