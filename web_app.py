"""Flask Web 前端 - 摄像头番茄钟"""

import time

from flask import Flask, Response, jsonify, render_template, request

from controller.events import POMODORO_ACTIONS
from controller.focus_controller import FocusController
from main import load_config

# 限时暂停检测的上限（分钟）
MAX_PAUSE_MINUTES = 24 * 60


def create_app(controller: FocusController) -> Flask:
    """创建绑定到指定控制器的 Flask 应用。所有控制请求只投递事件。"""
    app = Flask(__name__, template_folder="web/templates", static_folder=None)
    app.config["FOCUS_CONTROLLER"] = controller

    @app.route("/")
    def index():
        return render_template("index.html")

    @app.route("/api/start_camera", methods=["POST"])
    def api_start_camera():
        data = request.get_json(silent=True) or {}
        camera_index = data.get("camera_index", controller.camera_index)
        if not isinstance(camera_index, int) or isinstance(camera_index, bool) or camera_index < 0:
            return jsonify({"success": False, "message": "无效的摄像头编号"}), 400
        controller.select_camera(camera_index)
        return jsonify({"success": True, "message": "正在打开摄像头"})

    @app.route("/api/stop_camera", methods=["POST"])
    def api_stop_camera():
        controller.stop_camera()
        return jsonify({"success": True, "message": "摄像头已关闭"})

    @app.route("/api/camera", methods=["POST"])
    def api_camera():
        data = request.get_json(silent=True) or {}
        camera_index = data.get("camera_index")
        if not isinstance(camera_index, int) or isinstance(camera_index, bool) or camera_index < 0:
            return jsonify({"success": False, "message": "无效的摄像头编号"}), 400
        controller.select_camera(camera_index)
        return jsonify({"success": True, "camera_index": camera_index})

    @app.route("/api/pomodoro/<action>", methods=["POST"])
    def api_pomodoro(action):
        if action not in POMODORO_ACTIONS:
            return jsonify({"success": False, "message": f"未知操作: {action}"}), 400
        getattr(controller, f"{action}_pomodoro")()
        return jsonify({"success": True, "action": action})

    @app.route("/api/detection/pause", methods=["POST"])
    def api_detection_pause():
        data = request.get_json(silent=True) or {}
        minutes = data.get("minutes")
        if (
            not isinstance(minutes, (int, float))
            or isinstance(minutes, bool)
            or not 0 < minutes <= MAX_PAUSE_MINUTES
        ):
            return jsonify({"success": False, "message": f"minutes 必须在 0~{MAX_PAUSE_MINUTES} 之间"}), 400
        controller.pause_detection(minutes)
        return jsonify({"success": True, "minutes": minutes})

    @app.route("/api/detection/disable", methods=["POST"])
    def api_detection_disable():
        controller.pause_detection(None)
        return jsonify({"success": True})

    @app.route("/api/detection/enable", methods=["POST"])
    def api_detection_enable():
        controller.enable_detection()
        return jsonify({"success": True})

    @app.route("/api/mute", methods=["POST"])
    def api_mute():
        controller.toggle_mute()
        return jsonify({"success": True})

    @app.route("/api/data")
    def api_data():
        return jsonify(controller.snapshot())

    @app.route("/api/logs")
    def api_logs():
        since = request.args.get("since", 0, type=int)
        logs, total = controller.board.get_logs(since)
        return jsonify({"logs": logs, "total": total})

    @app.route("/video_feed")
    def video_feed():
        def generate():
            while True:
                frame = controller.board.get_frame()
                if frame is not None:
                    yield (b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + frame + b"\r\n")
                time.sleep(0.03)
        return Response(generate(), mimetype="multipart/x-mixed-replace; boundary=frame")

    return app


def run_server(config_path=None, host="0.0.0.0", port=5000):
    """启动控制器分发线程和 Flask 服务；摄像头由页面按钮开启。"""
    controller = FocusController(load_config(config_path))
    controller.start(open_camera=False)
    app = create_app(controller)
    try:
        app.run(host=host, port=port, debug=False, threaded=True)
    finally:
        controller.shutdown()


if __name__ == "__main__":
    run_server()
